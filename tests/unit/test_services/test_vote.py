"""Unit tests for vote service."""
import pytest
from datetime import timedelta
from unittest.mock import patch
from sqlalchemy.exc import IntegrityError

from agora.core.exceptions import (
    DuplicateVoteRace,
    EmptyFreeTextResponse,
    InvalidOption,
    InvalidRankSequence,
    PollClosed,
    PollExpired,
    UnauthenticatedVotingDisabled,
)
from agora.core.utils import utcnow
from agora.db.models import PollVote
from agora.services.poll import set_poll_status
from agora.services.vote import (
    FreeText,
    RankedChoice,
    SingleChoice,
    get_identity_votes,
    submit_vote,
)
from tests.utils import device, option_ids, user


def _vote_count(db_session, poll):
    return db_session.query(PollVote).filter(PollVote.poll_id == poll.id).count()


@pytest.mark.unit
class TestEligibility:
    """Eligibility checks run in order and never write."""

    @pytest.mark.parametrize("status", ["closed", "archived"])
    def test_inactive_poll_rejected(self, db_session, make_poll, status):
        poll = make_poll()
        set_poll_status(db_session, poll.id, status)

        with pytest.raises(PollClosed):
            submit_vote(db_session, poll, user(1), SingleChoice(option_ids(poll)[0]))

        assert _vote_count(db_session, poll) == 0

    def test_past_deadline_rejected(self, db_session, make_poll):
        poll = make_poll(deadline=utcnow() + timedelta(hours=1))
        later = utcnow() + timedelta(hours=2)

        with pytest.raises(PollExpired):
            submit_vote(db_session, poll, user(1), SingleChoice(option_ids(poll)[0]), now=later)

        assert _vote_count(db_session, poll) == 0

    def test_vote_at_exact_deadline_rejected(self, db_session, make_poll):
        deadline = utcnow() + timedelta(hours=1)
        poll = make_poll(deadline=deadline)

        with pytest.raises(PollExpired):
            submit_vote(db_session, poll, user(1), SingleChoice(option_ids(poll)[0]), now=deadline)

    def test_vote_before_deadline_accepted(self, db_session, make_poll):
        poll = make_poll(deadline=utcnow() + timedelta(hours=1))

        result = submit_vote(db_session, poll, user(1), SingleChoice(option_ids(poll)[0]))

        assert result.created is True

    def test_closed_wins_over_expired(self, db_session, make_poll):
        """The status check comes first."""
        poll = make_poll(deadline=utcnow() + timedelta(hours=1))
        set_poll_status(db_session, poll.id, "closed")

        with pytest.raises(PollClosed):
            submit_vote(
                db_session, poll, user(1), SingleChoice(option_ids(poll)[0]),
                now=utcnow() + timedelta(days=1),
            )

    def test_anonymous_rejected_when_disabled(self, db_session, make_poll):
        poll = make_poll(allow_unauthenticated_voting=False)

        with pytest.raises(UnauthenticatedVotingDisabled):
            submit_vote(db_session, poll, device(1), SingleChoice(option_ids(poll)[0]))

        assert _vote_count(db_session, poll) == 0

    def test_anonymous_check_before_option_check(self, db_session, make_poll):
        poll = make_poll(allow_unauthenticated_voting=False)

        with pytest.raises(UnauthenticatedVotingDisabled):
            submit_vote(db_session, poll, device(1), SingleChoice(999999))

    def test_anonymous_allowed_when_enabled(self, db_session, make_poll):
        poll = make_poll(allow_unauthenticated_voting=True)

        result = submit_vote(db_session, poll, device(1, session_id="abc"), SingleChoice(option_ids(poll)[0]))

        vote = result.votes[0]
        assert vote.is_authenticated is False
        assert vote.user_id is None
        assert vote.ip_address == "203.0.113.1"
        assert vote.session_id == "abc"


@pytest.mark.unit
class TestSingleChoice:

    def test_first_vote_creates_row(self, db_session, make_poll):
        poll = make_poll()
        first = option_ids(poll)[0]

        result = submit_vote(db_session, poll, user(1), SingleChoice(first))

        assert result.created is True
        assert len(result.votes) == 1
        assert result.votes[0].option_id == first
        assert result.votes[0].is_authenticated is True
        assert result.votes[0].rank_position == 1

    def test_option_from_other_poll_rejected(self, db_session, make_poll):
        poll = make_poll()
        other = make_poll(title="Another poll entirely")

        with pytest.raises(InvalidOption):
            submit_vote(db_session, poll, user(1), SingleChoice(option_ids(other)[0]))

        assert _vote_count(db_session, poll) == 0

    def test_wrong_selection_kind_rejected(self, db_session, make_poll):
        poll = make_poll()

        with pytest.raises(InvalidOption):
            submit_vote(db_session, poll, user(1), FreeText("Athens"))

    def test_vote_change_is_idempotent(self, db_session, make_poll):
        """A, then B, then A again leaves one row pointing at A."""
        poll = make_poll()
        a, b, _ = option_ids(poll)

        first = submit_vote(db_session, poll, user(1), SingleChoice(a))
        second = submit_vote(db_session, poll, user(1), SingleChoice(b))
        third = submit_vote(db_session, poll, user(1), SingleChoice(a))

        assert first.created is True
        assert second.created is False
        assert third.created is False

        rows = get_identity_votes(db_session, poll.id, user(1))
        assert len(rows) == 1
        assert rows[0].option_id == a
        assert rows[0].id == first.votes[0].id
        assert _vote_count(db_session, poll) == 1

    def test_anonymous_vote_change_keyed_on_device(self, db_session, make_poll):
        poll = make_poll(allow_unauthenticated_voting=True)
        a, b, _ = option_ids(poll)

        submit_vote(db_session, poll, device(1, session_id="s1"), SingleChoice(a))
        result = submit_vote(db_session, poll, device(1, session_id="s2"), SingleChoice(b))

        assert result.created is False
        assert _vote_count(db_session, poll) == 1
        assert result.votes[0].option_id == b
        assert result.votes[0].session_id == "s2"

    def test_distinct_identities_get_distinct_rows(self, db_session, make_poll):
        poll = make_poll(allow_unauthenticated_voting=True)
        a = option_ids(poll)[0]

        submit_vote(db_session, poll, user(1), SingleChoice(a))
        submit_vote(db_session, poll, user(2), SingleChoice(a))
        submit_vote(db_session, poll, device(1), SingleChoice(a))
        submit_vote(db_session, poll, device(2), SingleChoice(a))

        assert _vote_count(db_session, poll) == 4

    def test_user_and_device_are_separate_identities(self, db_session, make_poll):
        """A logged-in vote never updates an anonymous row and vice versa."""
        poll = make_poll(allow_unauthenticated_voting=True)
        a, b, _ = option_ids(poll)

        submit_vote(db_session, poll, device(1), SingleChoice(a))
        result = submit_vote(db_session, poll, user(1), SingleChoice(b))

        assert result.created is True
        assert _vote_count(db_session, poll) == 2


@pytest.mark.unit
class TestRankedChoice:

    def test_rows_per_ranked_option(self, db_session, make_poll):
        poll = make_poll(question_type="ranked-choice")
        a, b, c = option_ids(poll)

        result = submit_vote(db_session, poll, user(1), RankedChoice.from_order([c, a, b]))

        assert result.created is True
        assert [(v.option_id, v.rank_position) for v in result.votes] == [(c, 1), (a, 2), (b, 3)]

    def test_explicit_rankings_are_reordered(self, db_session, make_poll):
        poll = make_poll(question_type="ranked-choice")
        a, b, _ = option_ids(poll)

        result = submit_vote(db_session, poll, user(1), RankedChoice(((a, 2), (b, 1))))

        assert [(v.option_id, v.rank_position) for v in result.votes] == [(b, 1), (a, 2)]

    @pytest.mark.parametrize("ranks", [(1, 3), (2, 3), (0, 1), (1, 1)])
    def test_non_contiguous_ranks_rejected(self, db_session, make_poll, ranks):
        poll = make_poll(question_type="ranked-choice")
        a, b, _ = option_ids(poll)

        with pytest.raises(InvalidRankSequence):
            submit_vote(db_session, poll, user(1), RankedChoice(((a, ranks[0]), (b, ranks[1]))))

        assert _vote_count(db_session, poll) == 0

    def test_duplicate_option_rejected(self, db_session, make_poll):
        poll = make_poll(question_type="ranked-choice")
        a = option_ids(poll)[0]

        with pytest.raises(InvalidRankSequence):
            submit_vote(db_session, poll, user(1), RankedChoice.from_order([a, a]))

    def test_empty_ranking_rejected(self, db_session, make_poll):
        poll = make_poll(question_type="ranked-choice")

        with pytest.raises(InvalidRankSequence):
            submit_vote(db_session, poll, user(1), RankedChoice.from_order([]))

    def test_unknown_option_checked_before_ranks(self, db_session, make_poll):
        poll = make_poll(question_type="ranked-choice")
        a = option_ids(poll)[0]

        with pytest.raises(InvalidOption):
            submit_vote(db_session, poll, user(1), RankedChoice(((a, 1), (999999, 1))))

    def test_resubmission_shrinks_ranking(self, db_session, make_poll):
        poll = make_poll(question_type="ranked-choice")
        a, b, c = option_ids(poll)

        submit_vote(db_session, poll, user(1), RankedChoice.from_order([a, b, c]))
        result = submit_vote(db_session, poll, user(1), RankedChoice.from_order([b]))

        assert result.created is False
        assert [(v.option_id, v.rank_position) for v in result.votes] == [(b, 1)]
        assert _vote_count(db_session, poll) == 1

    def test_resubmission_grows_ranking(self, db_session, make_poll):
        poll = make_poll(question_type="ranked-choice", allow_unauthenticated_voting=True)
        a, b, c = option_ids(poll)

        submit_vote(db_session, poll, device(3), RankedChoice.from_order([a]))
        result = submit_vote(db_session, poll, device(3), RankedChoice.from_order([c, b, a]))

        assert result.created is False
        assert [(v.option_id, v.rank_position) for v in result.votes] == [(c, 1), (b, 2), (a, 3)]
        assert _vote_count(db_session, poll) == 3


@pytest.mark.unit
class TestFreeText:

    def test_response_stored_trimmed(self, db_session, make_poll):
        poll = make_poll(question_type="free-text", options=[])

        result = submit_vote(db_session, poll, user(1), FreeText("  More bike lanes  "))

        assert result.votes[0].free_text == "More bike lanes"
        assert result.votes[0].option_id is None

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_blank_response_rejected(self, db_session, make_poll, text):
        poll = make_poll(question_type="free-text", options=[])

        with pytest.raises(EmptyFreeTextResponse):
            submit_vote(db_session, poll, user(1), FreeText(text))

        assert _vote_count(db_session, poll) == 0

    def test_choice_selection_rejected(self, db_session, make_poll):
        poll = make_poll(question_type="free-text", options=[])

        with pytest.raises(InvalidOption):
            submit_vote(db_session, poll, user(1), SingleChoice(1))

    def test_response_change_updates_in_place(self, db_session, make_poll):
        poll = make_poll(question_type="free-text", options=[])

        submit_vote(db_session, poll, user(1), FreeText("first thought"))
        result = submit_vote(db_session, poll, user(1), FreeText("second thought"))

        assert result.created is False
        assert _vote_count(db_session, poll) == 1
        assert result.votes[0].free_text == "second thought"


@pytest.mark.unit
class TestConcurrentFirstVote:
    """A concurrent first vote from the same identity must not create two rows."""

    def _duplicate_error(self):
        return IntegrityError(
            "INSERT INTO poll_votes",
            {},
            Exception('duplicate key value violates unique constraint "uq_poll_votes_user_rank"'),
        )

    def test_lost_insert_race_becomes_update(self, db_session, make_poll):
        poll = make_poll()
        a, b, _ = option_ids(poll)
        poll_id = poll.id
        real_commit = db_session.commit
        calls = []

        def racing_commit():
            calls.append(1)
            if len(calls) == 1:
                # Another request from user 1 commits its first vote before ours
                db_session.rollback()
                db_session.add(PollVote(
                    poll_id=poll_id, option_id=a, rank_position=1, user_id=1, is_authenticated=True,
                ))
                real_commit()
                raise self._duplicate_error()
            return real_commit()

        with patch.object(db_session, "commit", side_effect=racing_commit):
            result = submit_vote(db_session, poll, user(1), SingleChoice(b))

        assert len(calls) == 2
        assert result.created is False
        assert [v.option_id for v in result.votes] == [b]
        assert db_session.query(PollVote).filter(PollVote.poll_id == poll_id).count() == 1

    def test_unresolved_race_raises_duplicate_vote_race(self, db_session, make_poll):
        poll = make_poll()

        with patch.object(db_session, "commit", side_effect=self._duplicate_error()), \
                patch.object(db_session, "rollback") as mock_rollback:
            with pytest.raises(DuplicateVoteRace):
                submit_vote(db_session, poll, user(1), SingleChoice(option_ids(poll)[0]))

        assert mock_rollback.call_count == 2

    def test_sqlite_style_unique_message_detected(self, db_session, make_poll):
        poll = make_poll()
        error = IntegrityError(
            "INSERT INTO poll_votes",
            {},
            Exception("UNIQUE constraint failed: poll_votes.poll_id, poll_votes.user_id, poll_votes.rank_position"),
        )

        with patch.object(db_session, "commit", side_effect=error), patch.object(db_session, "rollback"):
            with pytest.raises(DuplicateVoteRace):
                submit_vote(db_session, poll, user(1), SingleChoice(option_ids(poll)[0]))

    def test_other_integrity_error_propagates(self, db_session, make_poll):
        poll = make_poll()
        error = IntegrityError("INSERT INTO poll_votes", {}, Exception("FOREIGN KEY constraint failed"))

        with patch.object(db_session, "commit", side_effect=error), \
                patch.object(db_session, "rollback") as mock_rollback:
            with pytest.raises(IntegrityError):
                submit_vote(db_session, poll, user(1), SingleChoice(option_ids(poll)[0]))

        mock_rollback.assert_called_once()

    def test_storage_rejects_second_row_for_same_user(self, db_session, make_poll):
        """The unique index itself enforces one row per user and rank."""
        poll = make_poll()
        a, b, _ = option_ids(poll)
        poll_id = poll.id
        db_session.add(PollVote(poll_id=poll_id, option_id=a, rank_position=1, user_id=7, is_authenticated=True))
        db_session.commit()

        db_session.add(PollVote(poll_id=poll_id, option_id=b, rank_position=1, user_id=7, is_authenticated=True))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_storage_rejects_second_row_for_same_device(self, db_session, make_poll):
        poll = make_poll(allow_unauthenticated_voting=True)
        a, b, _ = option_ids(poll)
        poll_id = poll.id
        fingerprint = {"ip_address": "203.0.113.9", "user_agent": "curl/8.0", "is_authenticated": False}
        db_session.add(PollVote(poll_id=poll_id, option_id=a, rank_position=1, **fingerprint))
        db_session.commit()

        db_session.add(PollVote(poll_id=poll_id, option_id=b, rank_position=1, **fingerprint))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()
