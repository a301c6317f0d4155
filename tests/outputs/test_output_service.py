"""Tests for OutputService: store contract, anonymous invariant, creation/retrieval flows."""
from datetime import datetime, timedelta, timezone

import pytest

from app.models.generated_output import GeneratedOutput
from app.paywall.errors import MissingRequesterIdentityError
from app.paywall.models import NewOutput, NoOwner, OutputRecord, Requester, SessionOwner, UserOwner
from app.paywall.truncation import BANNER_MARKER, BANNER_RULE, count_words, strip_banner
from app.services.outputs.service import OutputService
from app.services.sessions.service import SessionMigrationService
from conftest import words


def _new(owner, full="full text here", preview="full text", truncated=True, output_type="analysis"):
    return NewOutput(
        output_type=output_type,
        full_content=full,
        preview_content=preview,
        is_truncated=truncated,
        owner=owner,
        metadata={"model": "gpt", "n": 1},
    )


class TestCreate:
    def test_user_output_keeps_full(self, db):
        output = OutputService(db).create(_new(UserOwner(user_id="u1")))
        assert output.output_id
        assert output.owner_kind == "user"
        assert output.user_id == "u1"
        assert output.session_id is None
        assert output.output_full == "full text here"
        assert output.meta == {"model": "gpt", "n": 1}
        assert output.created_at is not None

    @pytest.mark.parametrize("full", ["x", words(400), words(3000), "", "  spaced   out  "])
    def test_session_output_never_stores_full(self, db, full):
        service = OutputService(db)
        output = service.create(_new(SessionOwner(session_id="s1"), full=full))
        db.expire_all()
        stored = service.get_by_id(output.output_id)
        assert stored.output_full is None
        assert stored.owner_kind == "session"
        assert stored.session_id == "s1"

    def test_unowned_output(self, db):
        output = OutputService(db).create(_new(NoOwner()))
        assert output.owner_kind == "none"
        assert output.user_id is None
        assert output.session_id is None

    def test_ids_are_unique(self, db):
        service = OutputService(db)
        ids = {service.create(_new(UserOwner(user_id="u1"))).output_id for _ in range(5)}
        assert len(ids) == 5

    def test_record_round_trip_owner_variant(self, db):
        service = OutputService(db)
        for owner in (UserOwner(user_id="u1"), SessionOwner(session_id="s1"), NoOwner()):
            record = OutputRecord.from_model(service.create(_new(owner)))
            assert record.owner == owner


class TestQueries:
    def _at(self, db, output, minutes):
        output.created_at = datetime(2025, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=minutes)
        db.add(output)
        db.commit()

    def test_get_unknown_is_none(self, db):
        assert OutputService(db).get_by_id("nope") is None

    def test_list_by_user_newest_first(self, db):
        service = OutputService(db)
        old = service.create(_new(UserOwner(user_id="u1")))
        new = service.create(_new(UserOwner(user_id="u1")))
        mid = service.create(_new(UserOwner(user_id="u1")))
        service.create(_new(UserOwner(user_id="u2")))
        service.create(_new(SessionOwner(session_id="s1")))
        self._at(db, old, 1)
        self._at(db, mid, 2)
        self._at(db, new, 3)

        listed = service.list_by_user("u1")
        assert [o.output_id for o in listed] == [new.output_id, mid.output_id, old.output_id]
        assert service.get_latest_by_user("u1").output_id == new.output_id
        assert service.get_latest_by_user("nobody") is None

    def test_list_by_session_includes_migrated(self, db):
        service = OutputService(db)
        first = service.create(_new(SessionOwner(session_id="s1")))
        second = service.create(_new(SessionOwner(session_id="s1")))
        service.create(_new(SessionOwner(session_id="s2")))
        SessionMigrationService(db).migrate("s1", "u1")
        db.commit()

        listed = {o.output_id for o in service.list_by_session("s1")}
        assert listed == {first.output_id, second.output_id}
        assert {o.output_id for o in service.list_by_user("u1")} == listed


class TestStoreAndReturn:
    def test_free_owner_1200_words(self, db):
        service = OutputService(db)
        result = service.store_and_return(words(1200), "analysis", Requester(user_id="u1"))
        assert result.is_truncated is True
        assert result.preview_word_count <= 780
        assert result.full_word_count == 1200
        assert BANNER_MARKER in result.content
        assert count_words(strip_banner(result.content)) == result.preview_word_count
        assert result.is_anonymous is False
        assert result.override_applied is False

        stored = service.get_by_id(result.output_id)
        assert stored.output_full == words(1200)

    def test_anonymous_text_echoing_the_banner_is_still_gated(self, db):
        text = words(2000) + " SECRET_TAIL\n" + BANNER_RULE + "\n" + BANNER_MARKER
        result = OutputService(db).store_and_return(text, "analysis", Requester(session_id="s1"))
        assert result.is_truncated is True
        assert "SECRET_TAIL" not in result.content
        assert result.preview_word_count <= 1000

    def test_pro_owner_gets_full_at_creation(self, db):
        text = words(1200)
        result = OutputService(db).store_and_return(text, "rewrite", Requester(user_id="u1", is_pro=True))
        assert result.content == text
        assert result.is_truncated is False
        assert result.preview_word_count == 1200

    def test_anonymous_400_words(self, db):
        service = OutputService(db)
        text = words(400)
        result = service.store_and_return(text, "analysis", Requester(session_id="s1"))
        assert result.is_anonymous is True
        assert result.is_truncated is True
        assert result.preview_word_count <= 260
        assert service.get_by_id(result.output_id).output_full is None

        # logging in later (even as pro) does not unlock anonymous-origin content
        assert SessionMigrationService(db).migrate("s1", "u1") == 1
        db.commit()
        db.expire_all()
        decision = service.get_if_authorized(result.output_id, Requester(user_id="u1", session_id="s1", is_pro=True))
        assert decision is not None
        assert decision.authorized is False
        assert decision.content != text
        assert BANNER_MARKER in decision.content

    def test_override_returns_full_and_skips_ownership(self, db):
        service = OutputService(db)
        text = words(2000)
        result = service.store_and_return(text, "analysis", Requester(session_id="s1"), override=True)
        assert result.content == text
        assert result.override_applied is True
        assert result.is_truncated is False
        stored = service.get_by_id(result.output_id)
        assert stored.owner_kind == "none"
        assert stored.output_full == text
        assert stored.is_truncated is True  # the stored preview still is one

        # without override nobody gets more than the preview
        decision = service.get_if_authorized(result.output_id, Requester(user_id="u1", is_pro=True))
        assert decision.authorized is False
        assert decision.content == stored.output_preview

    def test_no_identity_without_override_rejected(self, db):
        with pytest.raises(MissingRequesterIdentityError):
            OutputService(db).store_and_return("some text", "analysis", Requester())
        assert db.query(GeneratedOutput).count() == 0

    def test_no_identity_with_override_allowed(self, db):
        result = OutputService(db).store_and_return("some text", "analysis", Requester(), override=True)
        assert result.content == "some text"

    def test_metadata_persisted(self, db):
        service = OutputService(db)
        result = service.store_and_return("a b c", "rewrite", Requester(user_id="u1"), metadata={"source": "upload"})
        assert service.get_by_id(result.output_id).meta == {"source": "upload"}

    def test_empty_text(self, db):
        result = OutputService(db).store_and_return("   ", "analysis", Requester(user_id="u1"))
        assert result.content == ""
        assert result.is_truncated is False
        assert result.full_word_count == 0


class TestGetIfAuthorized:
    def test_unknown_and_foreign_look_the_same(self, db):
        service = OutputService(db)
        result = service.store_and_return(words(100), "analysis", Requester(user_id="u1"))
        assert service.get_if_authorized("missing", Requester(user_id="u2")) is None
        assert service.get_if_authorized(result.output_id, Requester(user_id="u2", is_pro=True)) is None

    def test_upgrade_unlocks_existing_user_output(self, db):
        service = OutputService(db)
        text = words(1200)
        result = service.store_and_return(text, "analysis", Requester(user_id="u1"))

        before = service.get_if_authorized(result.output_id, Requester(user_id="u1", is_pro=False))
        assert before.authorized is False
        assert before.content == result.content

        after = service.get_if_authorized(result.output_id, Requester(user_id="u1", is_pro=True))
        assert after.authorized is True
        assert after.content == text

    def test_override_reads_any_output(self, db):
        service = OutputService(db)
        text = words(1200)
        result = service.store_and_return(text, "analysis", Requester(user_id="u1"))
        decision = service.get_if_authorized(result.output_id, Requester(), override=True)
        assert decision.content == text
        assert decision.authorized is True
