"""Unit tests for ProfileService — upsert, discovery and search."""
import pytest
import pytest_asyncio

from app.errors import NotFoundError
from app.schemas.profile import ProfileFields
from app.services.connection_service import ConnectionService
from app.services.gemini_service import EnhancementResult
from app.services.profile_service import ProfileService, to_candidate


@pytest.fixture
def service():
    return ProfileService()


def _ids(profiles):
    return [p.user_id for p in profiles]


class TestUpsertProfile:
    """Tests for upsert_profile."""

    @pytest.mark.asyncio
    async def test_creates_profile(self, db, service, user_factory):
        user = await user_factory(db)
        fields = ProfileFields(
            name="Kabir",
            bio="hi",
            interests="cricket, music",
            social_links={"instagram": "@kabir"},
        )
        enhancement = EnhancementResult(
            enhanced_bio="Hi there!", tags=["cricket", "music"], enhanced=True
        )

        profile = await service.upsert_profile(db, user.id, fields, enhancement)

        assert profile.name == "Kabir"
        assert profile.interests == ["cricket", "music"]
        assert profile.social_links["instagram"] == "@kabir"
        assert profile.ai_enhanced_bio == "Hi there!"
        assert profile.ai_tags == ["cricket", "music"]

    @pytest.mark.asyncio
    async def test_full_replace(self, db, service, user_factory):
        """A second upsert overwrites every field, including cleared ones."""
        user = await user_factory(db)
        await service.upsert_profile(
            db,
            user.id,
            ProfileFields(name="Kabir", bio="old bio", hometown="Surat"),
            EnhancementResult(enhanced_bio="old bio", tags=["old"]),
        )
        await db.commit()

        profile = await service.upsert_profile(
            db,
            user.id,
            ProfileFields(name="Kabir S."),
            EnhancementResult(enhanced_bio=None, tags=[]),
        )
        await db.commit()

        assert profile.name == "Kabir S."
        assert profile.bio is None
        assert profile.hometown is None
        assert profile.ai_tags == []
        assert (await service.get_profile(db, user.id)) is profile

    @pytest.mark.asyncio
    async def test_unknown_user(self, db, service):
        with pytest.raises(NotFoundError):
            await service.upsert_profile(
                db, 999, ProfileFields(name="Ghost"), EnhancementResult(enhanced_bio=None)
            )

    @pytest.mark.asyncio
    async def test_get_profile_missing(self, db, service, user_factory):
        user = await user_factory(db)
        assert await service.get_profile(db, user.id) is None


class TestCandidateQueries:
    """Tests for browse / discover / list_profiles."""

    @pytest.mark.asyncio
    async def test_browse_is_opposite_gender_only(
        self, db, service, user_factory, profile_factory
    ):
        me = await user_factory(db, gender="male")
        other_male = await user_factory(db, gender="male")
        f1 = await user_factory(db, gender="female")
        f2 = await user_factory(db, gender="female")
        for u in (me, other_male, f1, f2):
            await profile_factory(db, u)

        assert _ids(await service.browse(db, me.id)) == [f1.id, f2.id]
        assert _ids(await service.browse(db, f1.id)) == [me.id, other_male.id]

    @pytest.mark.asyncio
    async def test_users_without_profile_are_not_candidates(
        self, db, service, user_factory, profile_factory
    ):
        me = await user_factory(db, gender="male")
        await user_factory(db, gender="female")
        assert await service.browse(db, me.id) == []

    @pytest.mark.asyncio
    async def test_discover_excludes_decided(
        self, db, service, user_factory, profile_factory
    ):
        me = await user_factory(db, gender="male")
        liked = await user_factory(db, gender="female")
        passed = await user_factory(db, gender="female")
        fresh = await user_factory(db, gender="female")
        for u in (liked, passed, fresh):
            await profile_factory(db, u)

        connections = ConnectionService()
        await connections.decide(db, me.id, liked.id, "like")
        await connections.decide(db, me.id, passed.id, "pass")

        assert _ids(await service.discover(db, me.id)) == [fresh.id]
        # Browse still shows everyone.
        assert _ids(await service.browse(db, me.id)) == [liked.id, passed.id, fresh.id]

    @pytest.mark.asyncio
    async def test_discover_ignores_incoming_decisions(
        self, db, service, user_factory, profile_factory
    ):
        """Someone liking me does not hide them from my feed."""
        me = await user_factory(db, gender="male")
        admirer = await user_factory(db, gender="female")
        await profile_factory(db, admirer)

        await ConnectionService().decide(db, admirer.id, me.id, "like")

        assert _ids(await service.discover(db, me.id)) == [admirer.id]

    @pytest.mark.asyncio
    async def test_unknown_requester(self, db, service):
        with pytest.raises(NotFoundError):
            await service.discover(db, 999)

    @pytest.mark.asyncio
    async def test_list_profiles_keeps_order(
        self, db, service, user_factory, profile_factory
    ):
        a = await user_factory(db, gender="female")
        b = await user_factory(db, gender="female")
        no_profile = await user_factory(db, gender="female")
        await profile_factory(db, a)
        await profile_factory(db, b)

        result = await service.list_profiles(db, [b.id, no_profile.id, a.id])
        assert _ids(result) == [b.id, a.id]
        assert await service.list_profiles(db, []) == []

    @pytest.mark.asyncio
    async def test_to_candidate(self, db, user_factory, profile_factory):
        user = await user_factory(db, gender="female")
        profile = await profile_factory(db, user, name="Diya", social_links=None, ai_tags=None)

        candidate = to_candidate(profile)
        assert candidate.id == user.id
        assert candidate.user_id == user.id
        assert candidate.name == "Diya"
        assert candidate.ai_tags == []


class TestSearch:
    """Tests for the search filters."""

    @pytest_asyncio.fixture
    async def population(self, db, user_factory, profile_factory):
        me = await user_factory(db, gender="male")
        diya = await user_factory(db, gender="female")
        ananya = await user_factory(db, gender="female")
        meera = await user_factory(db, gender="female")
        await profile_factory(
            db,
            diya,
            department="Computer Engineering",
            year="3rd",
            location="Rajkot",
            hometown="Vadodara",
            interests=["robotics", "coding"],
        )
        await profile_factory(
            db,
            ananya,
            department="Architecture",
            year="2nd",
            location="Rajkot",
            hometown="Bhavnagar",
            interests=["sketching"],
            ai_tags=["travel photography"],
        )
        await profile_factory(
            db,
            meera,
            department="Electronics and Computer Science",
            year="3rd",
            location="Ahmedabad",
            hometown="Ahmedabad",
            interests=["music"],
        )
        return me, diya, ananya, meera

    @pytest.mark.asyncio
    async def test_no_filters_is_browse(self, db, service, population):
        me, diya, ananya, meera = population
        assert _ids(await service.search(db, me.id)) == [diya.id, ananya.id, meera.id]

    @pytest.mark.asyncio
    async def test_department_substring_case_insensitive(self, db, service, population):
        me, diya, _, meera = population
        result = await service.search(db, me.id, department="computer")
        assert _ids(result) == [diya.id, meera.id]

    @pytest.mark.asyncio
    async def test_year_is_exact(self, db, service, population):
        me, diya, _, meera = population
        assert _ids(await service.search(db, me.id, year="3rd")) == [diya.id, meera.id]
        assert await service.search(db, me.id, year="3") == []

    @pytest.mark.asyncio
    async def test_city_matches_location_or_hometown(self, db, service, population):
        me, diya, ananya, _ = population
        assert _ids(await service.search(db, me.id, city="vadodara")) == [diya.id]
        assert _ids(await service.search(db, me.id, city="Rajkot")) == [diya.id, ananya.id]

    @pytest.mark.asyncio
    async def test_interest_matches_interests_or_tags(self, db, service, population):
        me, diya, ananya, _ = population
        assert _ids(await service.search(db, me.id, interest="Robot")) == [diya.id]
        assert _ids(await service.search(db, me.id, interest="photography")) == [ananya.id]

    @pytest.mark.asyncio
    async def test_filters_combine(self, db, service, population):
        me, _, _, meera = population
        result = await service.search(db, me.id, year="3rd", city="ahmedabad")
        assert _ids(result) == [meera.id]

    @pytest.mark.asyncio
    async def test_search_never_returns_same_gender(self, db, service, population, user_factory, profile_factory):
        me, *_ = population
        rival = await user_factory(db, gender="male")
        await profile_factory(db, rival, department="Computer Engineering")
        result = await service.search(db, me.id, department="computer")
        assert rival.id not in _ids(result)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("term", ["%", "_", "\\"])
    async def test_like_wildcards_match_literally(self, db, service, population, term):
        me, *_ = population
        assert await service.search(db, me.id, department=term) == []
        assert await service.search(db, me.id, city=term) == []

    @pytest.mark.asyncio
    async def test_literal_percent_in_department(self, db, service, population, user_factory, profile_factory):
        me, *_ = population
        odd = await user_factory(db, gender="female")
        await profile_factory(db, odd, department="100% Design")
        assert _ids(await service.search(db, me.id, department="0% d")) == [odd.id]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("term", [",", '"', "[", '","'])
    async def test_interest_ignores_list_punctuation(self, db, service, population, term):
        me, *_ = population
        assert await service.search(db, me.id, interest=term) == []
