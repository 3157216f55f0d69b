"""
Tests for the call-scoring dashboard summary.
"""

from datetime import datetime

import pytest

from analytics.call_scoring import CallScoringRecord, TeamMember, summarize_calls

ANALYZED = datetime(2026, 10, 13, 15, 0)


@pytest.fixture
def team():
    return [TeamMember("m1", "Alice"), TeamMember("m2", "Bob"), TeamMember("m3", "Cara")]


@pytest.fixture
def calls():
    return [
        CallScoringRecord(
            id="c1",
            team_member_id="m1",
            potential_rank="HIGH",
            overall_score=80,
            skill_scores={"rapport": 80, "coverage": 60},
            discovery_wins={"ask_about_work": True, "Ask About Work": True, "set_follow_up": False},
            analyzed_at=ANALYZED,
        ),
        CallScoringRecord(
            id="c2",
            team_member_id="m1",
            potential_rank="LOW",
            overall_score=70,
            skill_scores={"rapport": 72, "coverage": 62},
            discovery_wins={"Ask about work!": False, "Set Follow-up": True},
            analyzed_at=ANALYZED,
        ),
        CallScoringRecord(
            id="c3",
            team_member_id="m2",
            potential_rank="VERY HIGH",
            overall_score=0,
            analyzed_at=ANALYZED,
        ),
        CallScoringRecord(id="c4", team_member_id="m2", overall_score=99),
    ]


class TestSummarizeCalls:

    def test_only_analyzed_calls_count(self, calls, team):
        summary = summarize_calls(calls, team)

        assert summary.total == 3
        assert summary.rank_counts == {"HIGH": 1, "LOW": 1, "VERY HIGH": 1}

    def test_average_skills(self, calls, team):
        summary = summarize_calls(calls, team)

        assert summary.avg_skills["rapport"] == 76
        assert summary.avg_skills["coverage"] == 61
        assert summary.avg_skills["closing"] == 0

    def test_empty_skill_scores_still_count(self, calls, team):
        unscored = CallScoringRecord(id="c5", team_member_id="m3", skill_scores={}, analyzed_at=ANALYZED)

        summary = summarize_calls([calls[0], unscored], team)

        assert summary.avg_skills["rapport"] == 40
        assert summary.avg_skills["coverage"] == 30

    def test_checklist(self, calls, team):
        summary = summarize_calls(calls, team)

        rates = {r.key: r for r in summary.checklist_rates}
        assert rates["ask about work"].rate == 50
        assert rates["ask about work"].label == "ask_about_work"
        assert rates["set follow up"].label == "set_follow_up"
        assert summary.avg_checklist_completion == 1.0

    def test_member_stats(self, calls, team):
        summary = summarize_calls(calls, team)

        stats = {m.id: m for m in summary.member_stats}
        assert set(stats) == {"m1", "m2"}
        assert stats["m1"].total_calls == 2
        assert stats["m1"].avg_score == 75
        assert stats["m1"].high_rank_pct == 50
        assert stats["m1"].avg_checklist == 1.0
        assert stats["m2"].avg_score == 0
        assert stats["m2"].high_rank_pct == 100

    def test_member_filter(self, calls, team):
        assert summarize_calls(calls, team, member_filter="m1").total == 2
        assert summarize_calls(calls, team, member_filter="all").total == 3

    def test_nothing_analyzed(self, team):
        assert summarize_calls([CallScoringRecord(id="c", team_member_id="m1")], team) is None
        assert summarize_calls([], team) is None

    def test_from_dict(self):
        record = CallScoringRecord.from_dict({
            "id": 7,
            "team_member_id": "m1",
            "overall_score": 88,
            "analyzed_at": "2026-10-13T15:00:00Z",
        })

        assert record.id == "7"
        assert record.overall_score == 88
        assert record.analyzed_at
