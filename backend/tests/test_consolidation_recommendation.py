"""Integration tests for consolidation recommendations."""

from __future__ import annotations

import unittest

from sqlalchemy.orm import Session, sessionmaker

from api_registry.consolidation.child_index import ChildRecordIndex
from api_registry.consolidation.errors import InsufficientCandidates, ResourcesMissing
from api_registry.consolidation.recommendation import RecommendationService
from api_registry.consolidation.scoring import ScoringEngine
from api_registry.consolidation.store import RegistryStore
from api_registry.consolidation.types import ScoringWeights
from api_registry.models.base import Base
from tests.helpers import add_integration, make_sqlite_engine, reset_tables, routes


class RecommendationServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.engine = make_sqlite_engine()
        cls.SessionLocal = sessionmaker(bind=cls.engine, autoflush=False, autocommit=False, future=True)
        Base.metadata.create_all(cls.engine)

    @classmethod
    def tearDownClass(cls) -> None:
        Base.metadata.drop_all(cls.engine)
        cls.engine.dispose()

    def setUp(self) -> None:
        self.db: Session = self.SessionLocal()
        reset_tables(self.db)
        self.service = self._service()

    def tearDown(self) -> None:
        self.db.close()

    def _service(self, weights: ScoringWeights | None = None) -> RecommendationService:
        store = RegistryStore(self.db)
        return RecommendationService(store, ChildRecordIndex(store), ScoringEngine(weights))

    def _seed_healthcare(self) -> None:
        add_integration(
            self.db,
            "internal_healthcare_api",
            routes(9, "/patients"),
            status="active",
            base_url="https://internal.example.org",
        )
        add_integration(
            self.db,
            "core_healthcare_api",
            routes(20, "/patients"),
            status="draft",
            documentation_url="https://docs.example.org/core",
            with_schemas=True,
        )

    def test_documented_core_api_wins_with_high_confidence(self) -> None:
        self._seed_healthcare()

        recommendation = self.service.recommend({"internal_healthcare_api", "core_healthcare_api"})

        self.assertEqual(recommendation.keep.resource.id, "core_healthcare_api")
        self.assertEqual(recommendation.keep.score, 125.0)
        self.assertEqual([scored.resource.id for scored in recommendation.remove], ["internal_healthcare_api"])
        self.assertEqual(recommendation.remove[0].score, 42.0)
        self.assertEqual(recommendation.confidence, "high")
        self.assertEqual(recommendation.plan.keep_id, "core_healthcare_api")
        self.assertEqual(recommendation.plan.remove_ids, ("internal_healthcare_api",))

    def test_tie_prefers_lexicographically_smaller_id(self) -> None:
        add_integration(self.db, "zeta_api", routes(3), status="active")
        add_integration(self.db, "alpha_api", routes(3), status="active")

        for _ in range(3):
            recommendation = self.service.recommend(["zeta_api", "alpha_api"])
            self.assertEqual(recommendation.keep.resource.id, "alpha_api")
            self.assertEqual(recommendation.confidence, "medium")

    def test_close_scores_give_medium_confidence(self) -> None:
        add_integration(self.db, "a", routes(10))
        add_integration(self.db, "b", routes(9))

        recommendation = self.service.recommend(["a", "b"])

        self.assertEqual(recommendation.keep.resource.id, "a")
        self.assertEqual(recommendation.confidence, "medium")

    def test_zero_weights_fall_back_to_id_order(self) -> None:
        self._seed_healthcare()

        recommendation = self._service(ScoringWeights.zero()).recommend(
            ["internal_healthcare_api", "core_healthcare_api"]
        )

        self.assertEqual(recommendation.keep.resource.id, "core_healthcare_api")
        self.assertEqual(recommendation.confidence, "medium")

    def test_requires_two_distinct_candidates(self) -> None:
        add_integration(self.db, "only", routes(1))

        with self.assertRaises(InsufficientCandidates):
            self.service.recommend(["only"])
        with self.assertRaises(InsufficientCandidates):
            self.service.recommend(["only", " only "])

    def test_unknown_candidates_are_reported(self) -> None:
        add_integration(self.db, "known", routes(1))

        with self.assertRaises(ResourcesMissing) as ctx:
            self.service.recommend(["known", "unknown"])

        self.assertEqual(ctx.exception.missing_ids, ["unknown"])

    def test_risk_assessment_follows_endpoints_to_migrate(self) -> None:
        add_integration(self.db, "big", routes(60), status="active")
        add_integration(self.db, "mid", routes(25))
        add_integration(self.db, "small", routes(5))

        self.assertEqual(self.service.recommend(["big", "small"]).risk_assessment, "low")
        self.assertEqual(self.service.recommend(["big", "mid"]).risk_assessment, "medium")
        self.assertEqual(self.service.recommend(["big", "mid", "small"]).risk_assessment, "medium")
        self.assertEqual(self.service.recommend(["mid", "small", "big"]).keep.resource.id, "big")

    def test_migration_steps_name_survivor_and_duplicates(self) -> None:
        self._seed_healthcare()

        steps = self.service.recommend(["internal_healthcare_api", "core_healthcare_api"]).migration_steps

        self.assertEqual(steps[0], 'Keep "core_healthcare_api" as the single source of truth (score 125)')
        self.assertEqual(steps[1], 'Deprecate "internal_healthcare_api" (score 42)')
        self.assertEqual(steps[2], "Migrate 9 endpoints to core_healthcare_api")

    def test_discover_candidates_by_name_substring(self) -> None:
        self._seed_healthcare()
        add_integration(self.db, "billing_api", routes(1), name="Billing")
        add_integration(self.db, "percent_api", routes(1), name="100%_coverage")

        self.assertEqual(
            self.service.discover_candidates(["HEALTHCARE"]),
            ["core_healthcare_api", "internal_healthcare_api"],
        )
        self.assertEqual(self.service.discover_candidates(["bill", "core_"]), ["billing_api", "core_healthcare_api"])
        self.assertEqual(self.service.discover_candidates(["%"]), ["percent_api"])
        self.assertEqual(self.service.discover_candidates(["", "  "]), [])


if __name__ == "__main__":
    unittest.main()
