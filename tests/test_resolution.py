"""
Tests for the resolution layer: candidates, lexical matching, policy, resolver.
"""
import threading
from unittest.mock import Mock

import pytest
from fakes import FAKE_DIMENSION, SAMPLE_PROJECTS, FailingEmbeddings, SlowEmbeddings
from project_resolver.embeddings import EmbeddingProvider
from project_resolver.indexing import IndexSnapshot, ProjectIndexManager
from project_resolver.models import CandidateOrigin, ProjectRef
from project_resolver.resolution import (
    WILDCARD_QUERY,
    CandidateBuilder,
    LexicalMatcher,
    ProjectResolver,
    ResolutionPolicy,
    containment_score,
)
from project_resolver.resolution.lexical_matcher import project_forms
from project_resolver.schemas import ScoredResult
from project_resolver.storage import InMemoryBlobStorage
from project_resolver.vector_store import ProjectVectorStore


@pytest.fixture
def synced_manager(index_manager):
    index_manager.sync_index(SAMPLE_PROJECTS)
    return index_manager


@pytest.fixture
def resolver(synced_manager, provider):
    return ProjectResolver(synced_manager, provider)


def make_snapshot(projects):
    refs = tuple(ProjectRef(k, n) for k, n in projects)
    return IndexSnapshot(store=ProjectVectorStore(), projects=refs)


class TestCandidateBuilder:
    """Tests for query expansion."""

    def test_raw_query_first(self):
        candidates = CandidateBuilder().build("  AITECH ")
        assert candidates[0].text == "AITECH"
        assert candidates[0].origin == CandidateOrigin.RAW
        assert candidates[0].rank == 0

    def test_latin_query_gets_variants(self):
        candidates = CandidateBuilder().build("aitech")
        texts = [c.text for c in candidates]
        assert "айтех" in texts
        assert all(c.origin == CandidateOrigin.TRANSLITERATION_VARIANT for c in candidates[1:])
        assert [c.rank for c in candidates] == list(range(len(candidates)))

    def test_cyrillic_query_not_expanded(self):
        assert [c.text for c in CandidateBuilder().build("айтех")] == ["айтех"]

    def test_mixed_script_query_not_expanded(self):
        assert len(CandidateBuilder().build("CRM проект")) == 1

    def test_no_letters_not_expanded(self):
        assert len(CandidateBuilder().build("2024")) == 1

    def test_variant_cap(self):
        candidates = CandidateBuilder(max_variants=3).build("aitech")
        assert len(candidates) == 4

    def test_zero_variants(self):
        assert len(CandidateBuilder(max_variants=0).build("aitech")) == 1

    def test_empty_query(self):
        assert CandidateBuilder().build("   ") == []

    def test_negative_cap_rejected(self):
        with pytest.raises(ValueError):
            CandidateBuilder(max_variants=-1)


class TestLexicalMatcher:
    """Tests for the embedding-free fallback scorer."""

    @pytest.mark.parametrize("query,field,expected", [
        ("crm", "crm", 1.0),
        ("tech", "aitech", 4 / 6),
        ("aitech project", "aitech", 6 / 14),
        ("zzz", "aitech", 0.0),
        ("", "aitech", 0.0),
    ])
    def test_containment_score(self, query, field, expected):
        assert containment_score(query, field) == pytest.approx(expected)

    def test_exact_key_case_insensitive(self):
        matcher = LexicalMatcher()
        assert matcher.score("aitech", ProjectRef("AITECH", "AI Technologies")) == 1.0

    def test_exact_name(self):
        matcher = LexicalMatcher()
        assert matcher.score("бухгалтерия", ProjectRef("BUH", "Бухгалтерия")) == 1.0

    def test_containment_without_fuzzy(self):
        matcher = LexicalMatcher(enable_fuzzy_matching=False)
        score = matcher.score("ai tech", ProjectRef("AITECH", "AI Technologies"))
        assert score == pytest.approx(7 / 15)

    def test_fuzzy_handles_split_spelling(self):
        matcher = LexicalMatcher(enable_fuzzy_matching=True)
        assert matcher.score("AI TECH", ProjectRef("AITECH", "AI Technologies")) >= 0.9

    def test_cyrillic_candidate_compared_in_latin(self):
        matcher = LexicalMatcher(enable_fuzzy_matching=False)
        assert matcher.score("црм", ProjectRef("TSRM", "Tracking")) == 1.0

    def test_latin_candidate_reaches_cyrillic_name(self):
        matcher = LexicalMatcher(enable_fuzzy_matching=False)
        assert matcher.score("bukhgalteriya", ProjectRef("BUH", "Бухгалтерия")) == 1.0

    def test_project_forms(self):
        assert project_forms(ProjectRef("BUH", "Бухгалтерия")) == (
            "buh", "бухгалтерия", "bukhgalteriya"
        )
        assert project_forms(ProjectRef("CRM", "crm")) == ("crm",)

    def test_match_keeps_best_candidate_and_threshold(self):
        matcher = LexicalMatcher(enable_fuzzy_matching=False)
        projects = [ProjectRef("AITECH", "AI Technologies"), ProjectRef("CRM", "Customer Relations")]
        results = matcher.match(["tech", "aitech"], projects, threshold=0.3)
        assert results == [ScoredResult("AITECH", "AI Technologies", 1.0)]


class TestResolutionPolicy:
    """Tests for merging, boosting and ranking."""

    def test_merge_keeps_max_per_key(self):
        merged = ResolutionPolicy.merge([
            [ScoredResult("A", "Alpha", 0.4), ScoredResult("B", "Beta", 0.9)],
            [ScoredResult("A", "Alpha", 0.7)],
        ])
        assert merged["A"].score == 0.7
        assert merged["B"].score == 0.9

    def test_rank_tie_breaks_by_key_length_then_key(self):
        policy = ResolutionPolicy()
        ranked = policy.rank([
            ScoredResult("ZZ", "z", 0.5),
            ScoredResult("ABC", "a", 0.5),
            ScoredResult("AA", "a", 0.5),
            ScoredResult("TOP", "t", 0.9),
        ], limit=10)
        assert [r.key for r in ranked] == ["TOP", "AA", "ZZ", "ABC"]

    def test_rank_rounds_before_ordering(self):
        """Test that scores equal after rounding fall back to the key tie-break."""
        policy = ResolutionPolicy(score_precision=4)
        ranked = policy.rank([
            ScoredResult("BBB", "b", 0.812340001),
            ScoredResult("AA", "a", 0.81234),
        ], limit=10)
        assert [r.key for r in ranked] == ["AA", "BBB"]
        assert ranked[1].score == 0.8123

    def test_rank_puts_exact_match_first_on_tie(self):
        """Test that an exact match beats an equal-scoring shorter key."""
        policy = ResolutionPolicy()
        ranked = policy.rank([
            ScoredResult("AB", "C", 1.0),
            ScoredResult("ABC", "Alpha", 1.0),
        ], limit=10, exact_keys={"ABC"})
        assert [r.key for r in ranked] == ["ABC", "AB"]

    def test_rank_limit(self):
        policy = ResolutionPolicy()
        results = [ScoredResult(f"K{i}", "n", 0.5) for i in range(5)]
        assert len(policy.rank(results, 2)) == 2
        assert policy.rank(results, 0) == []

    def test_exact_boost_overrides_score(self):
        policy = ResolutionPolicy()
        snapshot = make_snapshot([("CRM", "Customer Relations")])
        boosted = policy.apply_exact_boost(
            {"CRM": ScoredResult("CRM", "Customer Relations", 0.42)}, "crm", snapshot
        )
        assert boosted["CRM"].score == 1.0

    def test_exact_boost_adds_missed_project(self):
        """Test that an exact match surfaces even if the search missed it."""
        policy = ResolutionPolicy()
        snapshot = make_snapshot([("CRM", "Customer Relations")])
        boosted = policy.apply_exact_boost({}, "Customer Relations", snapshot)
        assert boosted == {"CRM": ScoredResult("CRM", "Customer Relations", 1.0)}

    def test_custom_exact_score(self):
        policy = ResolutionPolicy(exact_match_score=0.95)
        snapshot = make_snapshot([("CRM", "Customer Relations")])
        assert policy.apply_exact_boost({}, "CRM", snapshot)["CRM"].score == 0.95

    def test_invalid_exact_score(self):
        with pytest.raises(ValueError):
            ResolutionPolicy(exact_match_score=1.5)


class TestProjectResolver:
    """Tests for end-to-end resolution over the vector index."""

    @pytest.mark.parametrize("project", SAMPLE_PROJECTS, ids=lambda p: p["key"])
    def test_key_resolves_exactly(self, resolver, project):
        results = resolver.resolve(project["key"])
        assert results[0].key == project["key"]
        assert results[0].score == 1.0

    @pytest.mark.parametrize("project", SAMPLE_PROJECTS, ids=lambda p: p["key"])
    def test_name_resolves_exactly(self, resolver, project):
        results = resolver.resolve(project["name"].upper())
        assert results[0].key == project["key"]
        assert results[0].score == 1.0

    def test_exact_key_beats_parallel_vector(self, index_manager, provider):
        """Test that the exact key wins over another project whose vector scores 1.0 too."""
        index_manager.sync_index([{"key": "ABC", "name": "Alpha"}, {"key": "AB", "name": "C"}])
        results = ProjectResolver(index_manager, provider).resolve("ABC")
        assert [(r.key, r.score) for r in results[:2]] == [("ABC", 1.0), ("AB", 1.0)]

    def test_split_spelling(self, resolver):
        results = resolver.resolve("AI TECH")
        assert results[0].key == "AITECH"
        assert results[0].score >= 0.5

    def test_cyrillic_spelling_of_latin_key(self, resolver):
        results = resolver.resolve("айтех")
        scores = {r.key: r.score for r in results}
        assert scores.get("AITECH", 0.0) >= 0.5

    def test_nonsense_below_threshold(self, resolver):
        assert resolver.resolve("ZZZNOPE", threshold=0.3) == []

    @pytest.mark.parametrize("query", ["", "   ", None, 42])
    def test_empty_or_invalid_query(self, resolver, query):
        assert resolver.resolve(query) == []

    @pytest.mark.parametrize("limit", [0, 1, 2, 3, 10])
    def test_limit_respected(self, resolver, limit):
        results = resolver.resolve("ai", limit=limit, threshold=0.0)
        assert len(results) <= limit

    def test_threshold_zero_returns_everything(self, resolver):
        results = resolver.resolve("tech", threshold=0.0)
        assert {r.key for r in results} == {p["key"] for p in SAMPLE_PROJECTS}

    def test_results_sorted_and_unique(self, resolver):
        results = resolver.resolve("customer", threshold=0.0)
        keys = [r.key for r in results]
        assert len(keys) == len(set(keys))
        assert [r.score for r in results] == sorted((r.score for r in results), reverse=True)
        assert all(0.0 <= r.score <= 1.0 for r in results)

    def test_single_provider_call_per_query(self, resolver, letter_embeddings):
        """Test that all candidates are embedded in one request."""
        calls = letter_embeddings.calls
        resolver.resolve("aitech")
        assert letter_embeddings.calls == calls + 1

    def test_defaults_from_construction(self, synced_manager, provider):
        resolver = ProjectResolver(synced_manager, provider, default_limit=2, default_threshold=0.0)
        assert len(resolver.resolve("tech")) == 2

    def test_wildcard_lists_all(self, resolver, letter_embeddings):
        calls = letter_embeddings.calls
        results = resolver.resolve(WILDCARD_QUERY)
        assert [r.key for r in results] == sorted(p["key"] for p in SAMPLE_PROJECTS)
        assert all(r.score == 0.0 for r in results)
        assert letter_embeddings.calls == calls

    def test_wildcard_respects_limit(self, resolver):
        assert len(resolver.resolve("*", limit=2)) == 2

    def test_empty_index_makes_no_provider_call(self, index_manager, provider, letter_embeddings):
        resolver = ProjectResolver(index_manager, provider)
        assert resolver.resolve("aitech") == []
        assert letter_embeddings.calls == 0


class TestLexicalFallback:
    """Tests for resolution when embeddings are unavailable."""

    def test_failing_provider(self, synced_manager):
        failing = FailingEmbeddings()
        resolver = ProjectResolver(synced_manager, EmbeddingProvider(failing))
        results = resolver.resolve("AI TECH")
        assert failing.calls == 1
        assert results[0].key == "AITECH"
        assert results[0].score >= 0.5

    def test_timeout(self, synced_manager):
        provider = EmbeddingProvider(SlowEmbeddings(delay=0.5), timeout_seconds=0.05)
        results = ProjectResolver(synced_manager, provider).resolve("crm")
        assert results[0].key == "CRM"
        assert results[0].score == 1.0

    def test_cyrillic_query_for_latin_project(self, synced_manager):
        """Test that a Cyrillic spelling reaches a Latin-named project without embeddings."""
        resolver = ProjectResolver(synced_manager, EmbeddingProvider(FailingEmbeddings()))
        results = resolver.resolve("айтех")
        assert results[0].key == "AITECH"
        assert results[0].score >= 0.5

    def test_fallback_keeps_threshold(self, synced_manager):
        resolver = ProjectResolver(synced_manager, EmbeddingProvider(FailingEmbeddings()))
        assert resolver.resolve("ZZZNOPE", threshold=0.3) == []

    def test_query_dimension_mismatch(self, synced_manager):
        model = Mock()
        model.embed_documents.side_effect = lambda texts: [[0.1, 0.2] for _ in texts]
        resolver = ProjectResolver(synced_manager, EmbeddingProvider(model))
        results = resolver.resolve("Бухгалтерия")
        assert results[0].key == "BUH"

    def test_unexpected_error(self, synced_manager):
        provider = Mock(spec=EmbeddingProvider)
        provider.embed.side_effect = KeyError("boom")
        results = ProjectResolver(synced_manager, provider).resolve("finance")
        assert results[0].key == "FIN"

    def test_projects_without_vectors(self):
        """Test that an index whose embeddings all failed still resolves lexically."""
        failing = FailingEmbeddings()
        provider = EmbeddingProvider(failing, dimension=FAKE_DIMENSION)
        manager = ProjectIndexManager(provider, "index.json", storage=InMemoryBlobStorage())
        manager.load_or_initialize()
        manager.sync_index(SAMPLE_PROJECTS)
        calls = failing.calls

        results = ProjectResolver(manager, provider).resolve("human resources")

        assert results[0].key == "HR"
        assert failing.calls == calls


class TestConcurrency:

    def test_resolve_during_sync(self, synced_manager, provider):
        """Test that readers always see one consistent snapshot while syncs run."""
        renamed = [{"key": p["key"], "name": p["name"] + " v2"} for p in SAMPLE_PROJECTS]
        valid = {(p["key"], p["name"]) for p in SAMPLE_PROJECTS + renamed}
        resolver = ProjectResolver(synced_manager, provider)
        errors = []
        stop = threading.Event()

        def writer():
            try:
                for i in range(20):
                    synced_manager.sync_index(renamed if i % 2 == 0 else SAMPLE_PROJECTS)
            except Exception as e:
                errors.append(e)
            finally:
                stop.set()

        def reader(query):
            try:
                while not stop.is_set():
                    for result in resolver.resolve(query, threshold=0.0):
                        if (result.key, result.name) not in valid:
                            errors.append(AssertionError(f"inconsistent result {result}"))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=writer)]
        threads += [threading.Thread(target=reader, args=(q,)) for q in ("aitech", "CRM", "*")]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        assert errors == []
