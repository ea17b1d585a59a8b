import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_ats.scoring.relevance import (  # noqa: E402
    compute_relevance,
    contains_skill,
    keyword_score,
    missing_keywords,
    skill_match,
    tfidf_score,
    tokenize,
)
from resume_ats.taxonomy import AtsVocabulary  # noqa: E402


def vocabulary(**overrides):
    values = {
        "safe_fonts": ("Arial", "Calibri"),
        "skills": ("docker", "kubernetes", "ci/cd", "java", "c++"),
        "stop_words": frozenset({"with", "and", "the", "experience"}),
    }
    values.update(overrides)
    return AtsVocabulary(**values)


class FixedEmbedder:
    def embed(self, texts):
        return [[1.0, 0.0] for _ in texts]


class TokenizeTests(unittest.TestCase):
    def test_lowercases_strips_punctuation_and_short_words(self):
        tokens = tokenize("Built CI/CD pipelines, with Docker & AWS!", vocabulary())
        self.assertEqual(tokens, ["built", "pipelines", "docker"])

    def test_minimum_length_is_configurable(self):
        self.assertIn("aws", tokenize("AWS", vocabulary(min_token_length=3)))


class KeywordScoreTests(unittest.TestCase):
    def test_half_of_target_tokens_present(self):
        target = "kubernetes docker terraform ansible"
        self.assertEqual(keyword_score("kubernetes and docker", target, vocabulary()), 50.0)

    def test_short_token_scenario_with_three_letter_minimum(self):
        vocab = vocabulary(min_token_length=3)
        self.assertEqual(keyword_score("kubernetes docker", "kubernetes docker aws terraform", vocab), 50.0)

    def test_superset_scores_100(self):
        self.assertEqual(keyword_score("python docker kubernetes golang", "docker python", vocabulary()), 100.0)

    def test_empty_target_scores_zero(self):
        self.assertEqual(keyword_score("python docker", "", vocabulary()), 0.0)
        self.assertEqual(keyword_score("python docker", "a an to", vocabulary()), 0.0)


class TfidfScoreTests(unittest.TestCase):
    def test_identical_texts(self):
        text = "Senior platform engineer building Kubernetes clusters"
        self.assertAlmostEqual(tfidf_score(text, text, vocabulary()), 100.0, places=6)

    def test_disjoint_texts(self):
        self.assertEqual(tfidf_score("python django", "golang kafka", vocabulary()), 0.0)

    def test_empty_text(self):
        self.assertEqual(tfidf_score("", "python", vocabulary()), 0.0)

    def test_partial_overlap_is_between_bounds(self):
        score = tfidf_score("python django postgres", "python kafka golang", vocabulary())
        self.assertGreater(score, 0.0)
        self.assertLess(score, 100.0)


class SkillMatchTests(unittest.TestCase):
    def test_found_and_missing_partition(self):
        result = skill_match("Shipped Docker images", "Docker, Kubernetes and CI/CD required", vocabulary())
        self.assertEqual(result.found, ["docker"])
        self.assertEqual(result.missing, ["kubernetes", "ci/cd"])
        self.assertEqual(result.percent, 33)

    def test_no_required_skills(self):
        result = skill_match("Docker", "Friendly team player", vocabulary())
        self.assertEqual((result.found, result.missing, result.percent), ([], [], 0))

    def test_word_boundaries(self):
        self.assertFalse(contains_skill("javascript developer", "java"))
        self.assertTrue(contains_skill("java developer", "java"))
        self.assertTrue(contains_skill("modern c++ (17)", "c++"))
        self.assertTrue(contains_skill("built ci/cd pipelines", "ci/cd"))


class MissingKeywordTests(unittest.TestCase):
    def test_first_appearance_order_without_duplicates(self):
        target = "terraform python terraform golang kafka"
        self.assertEqual(missing_keywords("python", target, vocabulary()), ["terraform", "golang", "kafka"])

    def test_cap(self):
        target = " ".join(f"skill{index:02d}" for index in range(30))
        self.assertEqual(len(missing_keywords("", target, vocabulary())), 20)
        self.assertEqual(len(missing_keywords("", target, vocabulary(missing_keywords_limit=5))), 5)


class ComputeRelevanceTests(unittest.TestCase):
    def test_is_deterministic(self):
        candidate = "Platform engineer with Docker and Kubernetes experience"
        target = "Looking for Kubernetes, Terraform and CI/CD skills"
        first = compute_relevance(candidate, target, vocabulary=vocabulary())
        second = compute_relevance(candidate, target, vocabulary=vocabulary())
        self.assertEqual(first, second)

    def test_injected_embedder(self):
        result = compute_relevance("alpha", "beta", vocabulary=vocabulary(), embedder=FixedEmbedder())
        self.assertEqual(result.semantic_score, 100.0)

    def test_empty_inputs(self):
        result = compute_relevance("", "", vocabulary=vocabulary())
        self.assertEqual(result.keyword_score, 0.0)
        self.assertEqual(result.tfidf_score, 0.0)
        self.assertEqual(result.semantic_score, 0.0)
        self.assertEqual(result.missing_keywords, [])


if __name__ == "__main__":
    unittest.main()
