"""Tests for the attendance service: editor, aggregation and statistics.

Coverage:
* Points coercion.
* Replace-by-date saves, team snapshots, validation and rollback on failure.
* Calendar submission grouping.
* Player/team statistics ordering and distinct player counts.
* Trailing 30-day summary.
"""

from __future__ import annotations

import datetime as _dt
import uuid
from typing import Any

import pytest
from sqlalchemy.exc import OperationalError

from academy import models
from academy.services import attendance as svc
from academy.services.errors import PermissionDenied, StoreError, ValidationError

DAY = _dt.date(2024, 5, 1)


def _stored(db_session: Any, day: _dt.date):
    db_session.expire_all()
    rows = db_session.query(models.Attendance).filter(models.Attendance.date == day).all()
    return {r.player_id: r for r in rows}


@pytest.mark.parametrize(
    "raw, expected",
    [
        (3, 3),
        (-5, 0),
        ("abc", 0),
        ("7", 7),
        ("12abc", 12),
        (" 4 ", 4),
        ("-2", 0),
        (2.9, 2),
        (None, 0),
        (float("nan"), 0),
        (True, 0),
        (10 ** 30, svc.MAX_POINTS),
        ("9" * 40, svc.MAX_POINTS),
        (1e30, svc.MAX_POINTS),
    ],
)
def test_clamp_points(raw: Any, expected: int) -> None:
    assert svc.clamp_points(raw) == expected


def test_second_save_replaces_first(db_session, coach, make_team, make_player) -> None:
    team = make_team()
    a = make_player("Alex", team=team)
    b = make_player("Blair", team=team)
    c = make_player("Casey", team=team)

    svc.save_attendance_for_date(db_session, DAY, {a.id: 3, b.id: 1}, coach)
    svc.save_attendance_for_date(db_session, DAY, {b.id: 2, c.id: 4}, coach)

    stored = _stored(db_session, DAY)
    assert set(stored) == {b.id, c.id}
    assert stored[b.id].points == 2
    assert stored[c.id].points == 4


def test_save_only_touches_its_date(db_session, coach, make_player) -> None:
    a = make_player("Alex")
    other_day = DAY + _dt.timedelta(days=1)

    svc.save_attendance_for_date(db_session, other_day, {a.id: 2}, coach)
    svc.save_attendance_for_date(db_session, DAY, {}, coach)

    assert _stored(db_session, DAY) == {}
    assert _stored(db_session, other_day)[a.id].points == 2


def test_save_clamps_bad_points(db_session, coach, make_player) -> None:
    a = make_player("Alex")
    b = make_player("Blair")

    svc.save_attendance_for_date(db_session, DAY, {a.id: -5, b.id: "abc"}, coach)

    stored = _stored(db_session, DAY)
    assert stored[a.id].points == 0
    assert stored[b.id].points == 0


def test_save_caps_oversized_points(db_session, coach, make_player) -> None:
    a = make_player("Alex")

    svc.save_attendance_for_date(db_session, DAY, {a.id: 10 ** 30}, coach)

    assert _stored(db_session, DAY)[a.id].points == svc.MAX_POINTS


def test_save_snapshots_current_team(db_session, coach, make_team, make_player) -> None:
    first = make_team("Under 10")
    second = make_team("Under 12")
    a = make_player("Alex", team=first)

    svc.save_attendance_for_date(db_session, DAY, {a.id: 1}, coach)

    a.team_id = second.id
    db_session.commit()
    later = DAY + _dt.timedelta(days=7)
    svc.save_attendance_for_date(db_session, later, {a.id: 1}, coach)

    assert _stored(db_session, DAY)[a.id].team_id == first.id
    assert _stored(db_session, later)[a.id].team_id == second.id
    assert _stored(db_session, later)[a.id].updated_by_user_id == coach.id


def test_save_rejects_view_only_role(db_session, volunteer, make_player) -> None:
    a = make_player("Alex")

    with pytest.raises(PermissionDenied):
        svc.save_attendance_for_date(db_session, DAY, {a.id: 1}, volunteer)

    assert _stored(db_session, DAY) == {}


def test_save_rejects_unknown_player_without_writing(db_session, coach, make_player) -> None:
    a = make_player("Alex")
    svc.save_attendance_for_date(db_session, DAY, {a.id: 2}, coach)

    with pytest.raises(ValidationError):
        svc.save_attendance_for_date(db_session, DAY, {uuid.uuid4(): 1}, coach)

    assert _stored(db_session, DAY)[a.id].points == 2


def test_save_requires_date(db_session, coach) -> None:
    with pytest.raises(ValidationError):
        svc.save_attendance_for_date(db_session, None, {}, coach)


def test_failed_commit_keeps_previous_rows(db_session, coach, make_player, monkeypatch) -> None:
    a = make_player("Alex")
    b = make_player("Blair")
    svc.save_attendance_for_date(db_session, DAY, {a.id: 3}, coach)

    def failing_commit() -> None:
        raise OperationalError("INSERT INTO attendance", {}, Exception("database is locked"))

    monkeypatch.setattr(db_session, "commit", failing_commit)
    with pytest.raises(StoreError, match="database is locked"):
        svc.save_attendance_for_date(db_session, DAY, {b.id: 1}, coach)
    monkeypatch.undo()

    stored = _stored(db_session, DAY)
    assert set(stored) == {a.id}
    assert stored[a.id].points == 3


def test_group_submissions_counts_per_team_and_skips_empty_dates() -> None:
    t1, t2, gone = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    names = {t1: "Under 10", t2: "Under 12"}
    rows = [
        (_dt.date(2024, 5, 1), t1),
        (_dt.date(2024, 5, 1), None),
        (_dt.date(2024, 5, 1), t1),
        (_dt.date(2024, 5, 3), t2),
        (_dt.date(2024, 5, 3), gone),
    ]

    summary = svc.group_submissions(rows, names)

    assert list(summary) == ["2024-05-01", "2024-05-03"]
    assert "2024-05-02" not in summary
    assert [(s.team_id, s.team_name, s.count) for s in summary["2024-05-01"]] == [
        (t1, "Under 10", 2),
        (None, "No team", 1),
    ]
    assert [(s.team_name, s.count) for s in summary["2024-05-03"]] == [
        ("Under 12", 1),
        ("Unknown", 1),
    ]


def test_submission_summary_uses_inclusive_range(db_session, coach, make_team, make_player) -> None:
    team = make_team()
    a = make_player("Alex", team=team)
    for day in (_dt.date(2024, 4, 30), _dt.date(2024, 5, 1), _dt.date(2024, 5, 31), _dt.date(2024, 6, 1)):
        svc.save_attendance_for_date(db_session, day, {a.id: 1}, coach)

    summary = svc.submission_summary(db_session, _dt.date(2024, 5, 1), _dt.date(2024, 5, 31))

    assert sorted(summary) == ["2024-05-01", "2024-05-31"]
    assert summary["2024-05-01"][0].team_name == "Under 12"


def test_submission_summary_rejects_reversed_range(db_session) -> None:
    with pytest.raises(ValidationError):
        svc.submission_summary(db_session, _dt.date(2024, 5, 2), _dt.date(2024, 5, 1))


def _record(player_id: uuid.UUID, points: int, team_id: uuid.UUID = None, team_name: str = None) -> svc.AnalyticsRecord:
    return svc.AnalyticsRecord(player_id=player_id, points=points, team_id=team_id, team_name=team_name)


def test_player_stats_keeps_encounter_order_on_ties() -> None:
    a, b, c = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    records = [_record(a, 2), _record(b, 1), _record(c, 5), _record(b, 1)]

    stats = svc.player_stats(records)

    assert [s.player_id for s in stats] == [c, a, b]
    assert [(s.total_points, s.attendance_count) for s in stats] == [(5, 1), (2, 1), (2, 2)]


def test_team_stats_counts_distinct_players() -> None:
    team = uuid.uuid4()
    player = uuid.uuid4()
    records = [_record(player, points, team, "Under 12") for points in (1, 2, 3, 0, 4)]

    stats = svc.team_stats(records)

    assert len(stats) == 1
    assert stats[0].player_count == 1
    assert stats[0].total_points == 10
    assert stats[0].team_name == "Under 12"


def test_team_stats_buckets_players_without_team() -> None:
    team = uuid.uuid4()
    p1, p2, p3 = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    records = [
        _record(p1, 1, None),
        _record(p2, 3, team, "Under 12"),
        _record(p3, 2, None),
        _record(uuid.uuid4(), 1, uuid.uuid4(), None),
    ]

    stats = svc.team_stats(records)

    assert [(s.team_id, s.team_name, s.total_points, s.player_count) for s in stats[:2]] == [
        ("no-team", "No Team", 3, 2),
        (str(team), "Under 12", 3, 1),
    ]
    assert stats[2].team_name == "Unknown"


def test_analytics_filters_by_range_and_team(db_session, coach, make_team, make_player) -> None:
    u10 = make_team("Under 10")
    u12 = make_team("Under 12")
    a = make_player("Alex", team=u10)
    b = make_player("Blair", team=u12)
    svc.save_attendance_for_date(db_session, _dt.date(2024, 5, 1), {a.id: 3, b.id: 5}, coach)
    svc.save_attendance_for_date(db_session, _dt.date(2024, 5, 8), {a.id: 4, b.id: 1}, coach)
    svc.save_attendance_for_date(db_session, _dt.date(2024, 6, 1), {a.id: 9}, coach)

    players, teams = svc.analytics(db_session, _dt.date(2024, 5, 1), _dt.date(2024, 5, 31))
    assert [(s.first_name, s.total_points, s.attendance_count) for s in players] == [
        ("Alex", 7, 2),
        ("Blair", 6, 2),
    ]
    assert [(t.team_name, t.total_points, t.player_count) for t in teams] == [
        ("Under 10", 7, 1),
        ("Under 12", 6, 1),
    ]

    players, teams = svc.analytics(db_session, team_id=u12.id)
    assert [s.first_name for s in players] == ["Blair"]
    assert [t.team_id for t in teams] == [str(u12.id)]


def test_stored_ties_keep_save_order(db_session, coach, make_team, make_player) -> None:
    u10 = make_team("Under 10")
    u12 = make_team("Under 12")
    names = ["Fay", "Cal", "Ava", "Eli", "Dev", "Bea"]
    players = {name: make_player(name, team=u12 if name in ("Cal", "Bea") else u10) for name in names}

    for day in range(1, 6):
        ordered = names if day % 2 else list(reversed(names))
        when = _dt.date(2024, 5, day)
        svc.save_attendance_for_date(db_session, when, {players[n].id: 1 for n in ordered}, coach)

        stats, _ = svc.analytics(db_session, when, when)
        assert [s.first_name for s in stats] == ordered

        summary = svc.submission_summary(db_session, when, when)
        first_team = u12 if ordered[0] in ("Cal", "Bea") else u10
        assert summary[when.isoformat()][0].team_id == first_team.id


def test_load_day_keeps_other_teams_records(db_session, coach, make_team, make_player) -> None:
    u10 = make_team("Under 10")
    u12 = make_team("Under 12")
    alex = make_player("Alex", team=u10)
    blair = make_player("Blair", team=u12)
    casey = make_player("Casey", team=u12)
    make_player("Drew", team=u10)
    svc.save_attendance_for_date(db_session, DAY, {alex.id: 3, blair.id: 2}, coach)

    entries = svc.load_day(db_session, DAY, team_id=u12.id)

    assert [(e["first_name"], e["points"], e["exists"]) for e in entries] == [
        ("Alex", 3, True),
        ("Blair", 2, True),
        ("Casey", 1, False),
    ]

    svc.save_attendance_for_date(
        db_session, DAY, {e["player_id"]: e["points"] for e in entries}, coach
    )
    stored = _stored(db_session, DAY)
    assert {pid: r.points for pid, r in stored.items()} == {alex.id: 3, blair.id: 2, casey.id: 1}


@pytest.mark.parametrize(
    "attended, total, expected",
    [(7, 10, 70), (0, 0, 0), (2, 3, 67), (1, 8, 13), (1, 3, 33), (5, 5, 100)],
)
def test_attendance_pct(attended: int, total: int, expected: int) -> None:
    assert svc.attendance_pct(attended, total) == expected


def test_summarize_window_counts_only_last_30_days() -> None:
    today = _dt.date(2024, 5, 31)
    rows = [(today - _dt.timedelta(days=i), 1 if i < 7 else 0) for i in range(10)]
    rows.append((today - _dt.timedelta(days=30), 0))
    rows.append((today - _dt.timedelta(days=31), 5))

    summary = svc.summarize_window(rows, today, last_attendance_date=today)

    assert summary.last_30_days_total_sessions == 11
    assert summary.last_30_days_attended_sessions == 7
    assert summary.last_30_days_attendance_pct == 64
    assert summary.last_attendance_date == today


def test_player_summary_with_seven_of_ten(db_session, coach, make_player) -> None:
    a = make_player("Alex")
    now = _dt.datetime(2024, 5, 31, 18, 30)
    for i in range(10):
        svc.save_attendance_for_date(
            db_session, now.date() - _dt.timedelta(days=i), {a.id: 2 if i < 7 else 0}, coach
        )

    summary = svc.player_attendance_summary(db_session, a.id, now=now)

    assert summary.last_30_days_total_sessions == 10
    assert summary.last_30_days_attended_sessions == 7
    assert summary.last_30_days_attendance_pct == 70
    assert summary.last_attendance_date == now.date()


def test_player_summary_without_recent_records(db_session, coach, make_player) -> None:
    a = make_player("Alex")
    now = _dt.datetime(2024, 5, 31, 9, 0)
    old = _dt.date(2024, 1, 15)
    svc.save_attendance_for_date(db_session, old, {a.id: 3}, coach)

    summary = svc.player_attendance_summary(db_session, a.id, now=now)

    assert summary.last_30_days_total_sessions == 0
    assert summary.last_30_days_attendance_pct == 0
    assert summary.last_attendance_date == old


def test_filter_attendance_combines_search_team_and_date() -> None:
    team = uuid.uuid4()
    rows = [
        {"first_name": "Alex", "last_name": "Stone", "team_id": team, "date": DAY},
        {"first_name": "Blair", "last_name": "Stone", "team_id": None, "date": DAY},
        {"first_name": "Alex", "last_name": "Reed", "team_id": team, "date": _dt.date(2024, 4, 1)},
    ]

    assert len(svc.filter_attendance(rows, svc.AttendanceFilter(q="stone"))) == 2
    assert len(svc.filter_attendance(rows, svc.AttendanceFilter(q="ALEX", team_id=team))) == 2
    only = svc.filter_attendance(rows, svc.AttendanceFilter(q="alex", day=DAY))
    assert [r["last_name"] for r in only] == ["Stone"]
    assert svc.unique_dates(rows) == [DAY, _dt.date(2024, 4, 1)]
