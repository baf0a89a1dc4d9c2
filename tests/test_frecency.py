"""Tests for the frecency scoring engine, using an in-memory repository."""

import math

import pytest

from zg.core.errors import HistoryUnavailable, RepositoryUnavailable
from zg.core.types import BlameEntry, MatchCandidate, UNCOMMITTED
from zg.ranking.frecency import FrecencyScorer

from conftest import DAY, NOW

COMMITTED = BlameEntry.committed_at("a" * 40)


def lines(n: int) -> bytes:
    return b"".join(b"line %d\n" % i for i in range(n))


def make_scorer(repo, **kwargs):
    return FrecencyScorer(
        root=str(repo.root),
        repo_factory=lambda root: repo,
        now_func=lambda: NOW,
        **kwargs
    )


class TestLineBonus:
    """Tests for the per-line bonus."""

    def test_uncommitted_and_committed_bonus(self, fake_repo):
        fake_repo.set_working_file("a.py", lines(4), blame=(COMMITTED, UNCOMMITTED, COMMITTED, COMMITTED))
        candidates = [
            MatchCandidate("a.py", 1, "line 0"),
            MatchCandidate("a.py", 2, "line 1"),
        ]
        make_scorer(fake_repo).score(candidates)
        assert candidates[0].score == pytest.approx(2.0 / 4)
        assert candidates[1].score == pytest.approx(5.0 / 4)

    def test_uncommitted_beats_committed_five_to_two(self, fake_repo):
        fake_repo.set_working_file("a.py", lines(3), blame=(UNCOMMITTED, COMMITTED, COMMITTED))
        candidates = [MatchCandidate("a.py", 1, "x"), MatchCandidate("a.py", 2, "y")]
        make_scorer(fake_repo).score(candidates)
        assert candidates[0].score > candidates[1].score
        assert candidates[0].score / candidates[1].score == pytest.approx(5.0 / 2.0)

    def test_doubling_file_length_halves_bonus(self, tmp_path):
        from conftest import FakeRepository

        short = FakeRepository(tmp_path / "short")
        short.set_working_file("a.py", lines(10), blame=(UNCOMMITTED,) * 10)
        long = FakeRepository(tmp_path / "long")
        long.set_working_file("a.py", lines(20), blame=(UNCOMMITTED,) * 20)

        short_match = [MatchCandidate("a.py", 3, "line 2")]
        long_match = [MatchCandidate("a.py", 3, "line 2")]
        make_scorer(short).score(short_match)
        make_scorer(long).score(long_match)
        assert long_match[0].score == pytest.approx(short_match[0].score / 2)

    def test_bonus_uses_current_file_not_history(self, fake_repo):
        fake_repo.add_commit(NOW - 100 * DAY, {"a.py": lines(1)})
        fake_repo.set_working_file("a.py", lines(8), blame=(COMMITTED,) + (UNCOMMITTED,) * 7)
        candidates = [MatchCandidate("a.py", 5, "line 4")]
        make_scorer(fake_repo).score(candidates)
        assert candidates[0].score == pytest.approx(1.0 / 100 + 5.0 / 8)

    def test_line_beyond_blame_gets_no_bonus(self, fake_repo):
        fake_repo.set_working_file("a.py", lines(6), blame=(COMMITTED, COMMITTED))
        candidates = [MatchCandidate("a.py", 5, "line 4")]
        make_scorer(fake_repo).score(candidates)
        assert candidates[0].score == 0.0

    def test_blame_unavailable_keeps_history(self, fake_repo):
        fake_repo.add_commit(NOW - 2 * DAY, {"a.py": lines(5)})
        fake_repo.set_working_file("a.py", lines(5))
        candidates = [MatchCandidate("a.py", 1, "line 0")]
        make_scorer(fake_repo).score(candidates)
        assert candidates[0].score == pytest.approx(1.0 / 10)

    def test_binary_working_file_uses_size_estimate(self, fake_repo):
        fake_repo.set_working_file("data.bin", b"\xff" * 200, blame=(UNCOMMITTED,))
        candidates = [MatchCandidate("data.bin", 1, "?")]
        make_scorer(fake_repo).score(candidates)
        assert candidates[0].score == pytest.approx(5.0 / 4)

    def test_unreadable_working_file_counts_as_one_line(self, fake_repo):
        fake_repo.blames["gone.py"] = (UNCOMMITTED,)
        candidates = [MatchCandidate("gone.py", 1, "x")]
        make_scorer(fake_repo).score(candidates)
        assert candidates[0].score == pytest.approx(5.0)

    def test_custom_weights(self, fake_repo):
        fake_repo.set_working_file("a.py", lines(2), blame=(UNCOMMITTED, COMMITTED))
        candidates = [MatchCandidate("a.py", 1, "x"), MatchCandidate("a.py", 2, "y")]
        make_scorer(fake_repo, uncommitted_weight=3.0, committed_weight=1.0).score(candidates)
        assert candidates[0].score == pytest.approx(1.5)
        assert candidates[1].score == pytest.approx(0.5)


class TestScoring:
    """Tests for run orchestration, caching and invariants."""

    def test_history_plus_bonus(self, fake_repo):
        fake_repo.add_commit(NOW - 4 * DAY, {"a.py": lines(5)})
        fake_repo.add_commit(NOW - DAY, {"a.py": lines(5) + b"x\n"})
        fake_repo.set_working_file("a.py", lines(5) + b"x\n", blame=(COMMITTED,) * 6)
        candidates = [MatchCandidate("a.py", 6, "x")]
        make_scorer(fake_repo).score(candidates)
        expected = 1.0 / (5 * 4) + 1.0 / (6 * 1) + 2.0 / 6
        assert candidates[0].score == pytest.approx(expected)

    def test_empty_candidates_do_not_open_repository(self):
        def factory(root):
            raise AssertionError("repository opened for empty input")

        scorer = FrecencyScorer(repo_factory=factory)
        assert scorer.score([]) == []

    def test_returns_same_sequence_in_same_order(self, fake_repo):
        fake_repo.add_commit(NOW - DAY, {"b.py": lines(1)})
        fake_repo.set_working_file("a.py", lines(1), blame=(UNCOMMITTED,))
        fake_repo.set_working_file("b.py", lines(1), blame=(COMMITTED,))
        candidates = [MatchCandidate("b.py", 1, "b"), MatchCandidate("a.py", 1, "a")]
        result = make_scorer(fake_repo).score(candidates)
        assert result is candidates
        assert [c.path for c in result] == ["b.py", "a.py"]

    def test_only_score_is_mutated(self, fake_repo):
        fake_repo.set_working_file("a.py", lines(2), blame=(UNCOMMITTED, UNCOMMITTED))
        candidate = MatchCandidate("./a.py", 2, "line 1")
        make_scorer(fake_repo).score([candidate])
        assert (candidate.path, candidate.line_number, candidate.line_text) == ("./a.py", 2, "line 1")
        assert candidate.score > 0.0

    def test_path_forms_share_one_cache_entry(self, fake_repo):
        fake_repo.add_commit(NOW - DAY, {"src/a.py": lines(2)})
        fake_repo.set_working_file("src/a.py", lines(2), blame=(COMMITTED, UNCOMMITTED))
        absolute = str(fake_repo.root / "src" / "a.py")
        candidates = [
            MatchCandidate("src/a.py", 1, "line 0"),
            MatchCandidate("./src/a.py", 1, "line 0"),
            MatchCandidate(absolute, 1, "line 0"),
        ]
        # strict fake fails if the path is blamed twice
        make_scorer(fake_repo).score(candidates)
        assert candidates[0].score == candidates[1].score == candidates[2].score
        assert fake_repo.accesses.count(("blame", "src/a.py")) == 1

    def test_duplicate_candidates_score_identically(self, fake_repo):
        fake_repo.add_commit(NOW - 3 * DAY, {"a.py": lines(3)})
        fake_repo.set_working_file("a.py", lines(3), blame=(COMMITTED,) * 3)
        candidates = [MatchCandidate("a.py", 2, "line 1"), MatchCandidate("a.py", 2, "line 1")]
        make_scorer(fake_repo).score(candidates)
        assert candidates[0] is not candidates[1]
        assert candidates[0].score == candidates[1].score

    def test_store_never_queried_twice(self, fake_repo):
        for i in range(4):
            fake_repo.add_commit(NOW - (10 - i) * DAY, {"a.py": lines(3), "b.py": lines(i + 1)})
        fake_repo.set_working_file("a.py", lines(3), blame=(COMMITTED,) * 3)
        fake_repo.set_working_file("b.py", lines(4), blame=(COMMITTED,) * 4)
        candidates = [MatchCandidate(p, n, "x") for p in ("a.py", "b.py") for n in (1, 2, 3, 1, 2)]
        scorer = make_scorer(fake_repo)
        scorer.score(candidates)
        assert scorer.stats["blamed"] == 2
        assert scorer.stats["blobs"] == 5

    def test_deterministic(self, fake_repo):
        for i in range(5):
            fake_repo.add_commit(NOW - (i + 2) * 3 * DAY, {"a.py": lines(i + 2), "b.py": lines(7)})
        fake_repo.set_working_file("a.py", lines(6), blame=(COMMITTED,) * 5 + (UNCOMMITTED,))
        fake_repo.set_working_file("b.py", lines(7), blame=(COMMITTED,) * 7)

        def run():
            fake_repo.accesses.clear()
            candidates = [MatchCandidate("a.py", 6, "x"), MatchCandidate("b.py", 3, "y")]
            make_scorer(fake_repo).score(candidates)
            return [c.score for c in candidates]

        assert run() == run()

    def test_path_outside_repository_scores_zero(self, fake_repo, tmp_path_factory):
        outside = tmp_path_factory.mktemp("elsewhere") / "x.py"
        outside.write_text("x\n")
        fake_repo.set_working_file("a.py", lines(1), blame=(UNCOMMITTED,))
        candidates = [MatchCandidate(str(outside), 1, "x"), MatchCandidate("a.py", 1, "x")]
        make_scorer(fake_repo).score(candidates)
        assert candidates[0].score == 0.0
        assert candidates[1].score == pytest.approx(5.0)
        assert not any(key == str(outside) for _, key in fake_repo.accesses)

    def test_repository_is_closed(self, fake_repo):
        fake_repo.set_working_file("a.py", lines(1), blame=(UNCOMMITTED,))
        make_scorer(fake_repo).score([MatchCandidate("a.py", 1, "x")])
        assert fake_repo.closed

    def test_repository_closed_on_failure(self, fake_repo):
        fake_repo.head_missing = True
        with pytest.raises(HistoryUnavailable):
            make_scorer(fake_repo).score([MatchCandidate("a.py", 1, "x")])
        assert fake_repo.closed

    def test_repository_unavailable_propagates(self):
        def factory(root):
            raise RepositoryUnavailable("not a git work tree")

        with pytest.raises(RepositoryUnavailable):
            FrecencyScorer(repo_factory=factory).score([MatchCandidate("a.py", 1, "x")])

    def test_scores_are_finite_and_non_negative(self, fake_repo):
        fake_repo.add_commit(NOW, {"empty.txt": b""})
        fake_repo.set_working_file("empty.txt", b"", blame=())
        fake_repo.set_working_file("a.py", b"x", blame=(UNCOMMITTED,))
        candidates = [MatchCandidate("empty.txt", 1, ""), MatchCandidate("a.py", 1, "x")]
        make_scorer(fake_repo).score(candidates)
        for c in candidates:
            assert math.isfinite(c.score)
            assert c.score >= 0.0

    def test_verbose_reports_top_files(self, fake_repo):
        messages = []
        fake_repo.add_commit(NOW - DAY, {"a.py": lines(1)})
        fake_repo.set_working_file("a.py", lines(1), blame=(COMMITTED,))
        scorer = make_scorer(fake_repo, verbose=True, output_handler=messages.append)
        scorer.score([MatchCandidate("a.py", 1, "x")])
        assert any("History walk" in m for m in messages)
        assert any("a.py" in m for m in messages)
