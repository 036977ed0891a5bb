"""
Store failures: racing round generation, locked databases and the retryable 409 contract.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, select

from swiss_bracket.models.match import PHASE_SWISS, Match
from swiss_bracket.models.player import Player
from swiss_bracket.models.round_lock import RoundLock
from swiss_bracket.services import swiss_stage
from swiss_bracket.services.errors import DataConsistencyError, TransactionConflictError
from swiss_bracket.services.record_store import TournamentStore
from swiss_bracket.services.tournament_engine import TournamentEngine


def _database_locked(*args, **kwargs):
    raise OperationalError("UPDATE player", {}, Exception("database is locked"))


def _start_four(session: Session, rng) -> TournamentEngine:
    for name, dept in [("Ann", 1), ("Bo", 1), ("Cy", 2), ("Di", 2)]:
        session.add(Player(name=name, department_id=dept))
    session.commit()
    engine = TournamentEngine(session, rng)
    engine.start_swiss()
    return engine


def _round(session: Session, round_number: int) -> list[Match]:
    return list(
        session.exec(
            select(Match).where(Match.phase == PHASE_SWISS, Match.round_number == round_number).order_by(Match.id)
        ).all()
    )


def _claim_round_elsewhere(session: Session, round_number: int) -> None:
    """Another writer commits the round lock through its own session."""
    with Session(session.get_bind()) as other:
        other.add(RoundLock(phase=PHASE_SWISS, round_number=round_number))
        other.commit()


class TestRoundGenerationRace:
    """Both writers saw round 2 as missing; the second one to commit loses."""

    def test_losing_generator_gets_retryable_conflict(self, session: Session, rng, monkeypatch):
        engine = _start_four(session, rng)
        m1, m2 = _round(session, 1)
        engine.record_result(m1.id, m1.player1_id)
        # Decide the last match without triggering generation
        m2.winner_id = m2.player1_id
        session.add(m2)
        session.commit()

        monkeypatch.setattr(engine.store, "round_exists", lambda phase, round_number: False)
        _claim_round_elsewhere(session, 2)

        with pytest.raises(TransactionConflictError):
            engine.advance_swiss_round()

        session.expire_all()
        assert _round(session, 2) == []
        assert len(session.exec(select(RoundLock).where(RoundLock.round_number == 2)).all()) == 1

    def test_result_survives_conflicting_generation(self, session: Session, rng, monkeypatch):
        engine = _start_four(session, rng)
        m1, m2 = _round(session, 1)
        engine.record_result(m1.id, m1.player1_id)

        monkeypatch.setattr(engine.store, "round_exists", lambda phase, round_number: False)
        _claim_round_elsewhere(session, 2)

        result = engine.record_result(m2.id, m2.player2_id)

        assert result.advancement is None
        session.expire_all()
        assert session.get(Match, m2.id).winner_id == m2.player2_id
        assert session.get(Player, m2.player2_id).wins == 1
        assert session.get(Player, m2.player1_id).losses == 1
        assert _round(session, 2) == []

    def test_failed_generation_keeps_result(self, session: Session, rng, monkeypatch):
        engine = _start_four(session, rng)
        m1, _ = _round(session, 1)

        def broken_advance(store, rng):
            raise DataConsistencyError("Match references missing player 99")

        monkeypatch.setattr(swiss_stage, "advance_round", broken_advance)

        result = engine.record_result(m1.id, m1.player1_id)

        assert result.advancement is None
        session.expire_all()
        assert session.get(Match, m1.id).winner_id == m1.player1_id
        assert session.get(Player, m1.player1_id).points == 3


class TestLockedDatabase:
    """Failures before commit (locking reads, flushes) are retryable and leave nothing behind."""

    def test_delete_match(self, session: Session, rng, monkeypatch):
        engine = _start_four(session, rng)
        m1, _ = _round(session, 1)
        engine.record_result(m1.id, m1.player1_id)

        monkeypatch.setattr(engine.store.session, "flush", _database_locked)
        with pytest.raises(TransactionConflictError):
            engine.delete_match(m1.id)
        monkeypatch.undo()

        session.expire_all()
        assert session.get(Match, m1.id) is not None
        assert session.get(Player, m1.player1_id).wins == 1

    def test_start_swiss(self, session: Session, rng, monkeypatch):
        engine = _start_four(session, rng)
        m1, _ = _round(session, 1)
        engine.record_result(m1.id, m1.player1_id)

        monkeypatch.setattr(engine.store.session, "flush", _database_locked)
        with pytest.raises(TransactionConflictError):
            engine.start_swiss()
        monkeypatch.undo()

        session.expire_all()
        assert session.get(Match, m1.id).winner_id == m1.player1_id
        assert session.get(Player, m1.player1_id).wins == 1

    def test_store_flush(self, session: Session, monkeypatch):
        store = TournamentStore(session)
        monkeypatch.setattr(session, "flush", _database_locked)
        with pytest.raises(TransactionConflictError):
            store.flush()

    def test_locking_read(self, session: Session, rng, monkeypatch):
        engine = _start_four(session, rng)
        m1, _ = _round(session, 1)

        monkeypatch.setattr(engine.store, "lock_player", _database_locked)
        with pytest.raises(TransactionConflictError):
            engine.record_result(m1.id, m1.player1_id)
        monkeypatch.undo()

        session.expire_all()
        assert session.get(Match, m1.id).winner_id is None


def test_conflict_maps_to_409(client: TestClient, session: Session, monkeypatch):
    for i in range(4):
        client.post("/api/players", json={"name": f"Player {i + 1}", "department_id": i % 2 + 1})
    client.post("/api/swiss/start")
    m1, m2 = [m for m in client.get("/api/matches").json() if m["player2_id"] is not None]
    client.patch(f"/api/matches/{m1['id']}", json={"winner_id": m1["player1_id"]})

    monkeypatch.setattr(TournamentStore, "round_exists", lambda self, phase, round_number: False)
    session.add(RoundLock(phase=PHASE_SWISS, round_number=2))
    session.commit()

    resp = client.patch(f"/api/matches/{m2['id']}", json={"winner_id": m2["player1_id"]})
    assert resp.status_code == 200
    assert resp.json()["match"]["winner_id"] == m2["player1_id"]
    assert resp.json()["advancement"] is None

    resp = client.post("/api/swiss/next")
    assert resp.status_code == 409
    assert resp.headers["Retry-After"] == "1"
    assert resp.json()["detail"].startswith("TRANSACTION_CONFLICT")
