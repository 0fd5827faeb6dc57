"""Integration tests for consolidation plan validation."""

from __future__ import annotations

import unittest

from sqlalchemy.orm import Session, sessionmaker

from api_registry.consolidation.child_index import ChildRecordIndex
from api_registry.consolidation.errors import InvalidPlan, ResourcesMissing, StoreUnavailable
from api_registry.consolidation.store import RegistryStore
from api_registry.consolidation.types import ConsolidationPlan
from api_registry.consolidation.validator import ConsolidationValidator
from api_registry.models.api_endpoint import ApiEndpoint
from api_registry.models.base import Base
from tests.helpers import add_integration, make_sqlite_engine, reset_tables, routes


class _UnavailableEndpointStore(RegistryStore):
    def select_where(self, model, *criteria, order_by=()):
        if model is ApiEndpoint:
            raise StoreUnavailable("select on external_api_endpoints failed: timeout")
        return super().select_where(model, *criteria, order_by=order_by)


class ConsolidationValidatorTests(unittest.TestCase):
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
        self.store = RegistryStore(self.db)
        self.validator = ConsolidationValidator(self.store, ChildRecordIndex(self.store))

    def tearDown(self) -> None:
        self.db.close()

    def test_plan_is_safe_when_every_removed_endpoint_exists_on_keep(self) -> None:
        add_integration(self.db, "core", routes(5), with_schemas=True)
        add_integration(self.db, "internal", routes(3))
        add_integration(self.db, "legacy", routes(5)[2:])

        result = self.validator.validate(ConsolidationPlan("core", ("internal", "legacy")))

        self.assertTrue(result.safe_to_remove)
        self.assertEqual(result.unique_children_lost, [])
        self.assertEqual(result.keep_endpoint_count, 5)
        self.assertEqual(result.remove_endpoint_count, 6)
        self.assertEqual(result.notes, [])

    def test_unique_endpoint_makes_plan_unsafe(self) -> None:
        add_integration(self.db, "core_healthcare_api", routes(20, "/patients"), with_schemas=True)
        add_integration(
            self.db,
            "internal_healthcare_api",
            [*routes(8, "/patients"), ("GET", "/unique")],
            status="active",
        )

        result = self.validator.validate(
            ConsolidationPlan("core_healthcare_api", ("internal_healthcare_api",))
        )

        self.assertFalse(result.safe_to_remove)
        self.assertEqual([(ref.method, ref.path) for ref in result.unique_children_lost], [("GET", "/unique")])
        self.assertEqual(result.unique_children_lost[0].parent_id, "internal_healthcare_api")
        self.assertIn("1 unique endpoints would be lost", result.notes)

    def test_endpoint_identity_ignores_method_case_and_path_padding(self) -> None:
        add_integration(self.db, "keep", [("GET", "/patients")])
        add_integration(self.db, "dupe", [("get", " /patients ")])

        result = self.validator.validate(ConsolidationPlan("keep", ("dupe",)))

        self.assertTrue(result.safe_to_remove)

    def test_same_path_with_different_method_is_unique(self) -> None:
        add_integration(self.db, "keep", [("GET", "/patients")])
        add_integration(self.db, "dupe", [("POST", "/patients")])

        result = self.validator.validate(ConsolidationPlan("keep", ("dupe",)))

        self.assertFalse(result.safe_to_remove)
        self.assertEqual(result.unique_children_lost[0].label(), "POST:/patients")

    def test_schema_delta_is_reported_without_blocking(self) -> None:
        add_integration(self.db, "keep", routes(4))
        add_integration(self.db, "dupe", routes(3), with_schemas=True)

        result = self.validator.validate(ConsolidationPlan("keep", ("dupe",)))

        self.assertTrue(result.safe_to_remove)
        self.assertEqual(result.schema_coverage_delta, 3)
        self.assertIn("3 schemas might be lost", result.notes)

    def test_schema_delta_subtracts_keep_schemas_on_shared_keys_only(self) -> None:
        add_integration(self.db, "keep", [*routes(2), ("GET", "/other")], with_schemas=True)
        add_integration(self.db, "dupe", routes(2), with_schemas=True)

        result = self.validator.validate(ConsolidationPlan("keep", ("dupe",)))

        self.assertEqual(result.schema_coverage_delta, 0)
        self.assertEqual(result.notes, [])

    def test_strict_mode_blocks_on_schema_loss(self) -> None:
        add_integration(self.db, "keep", routes(4))
        add_integration(self.db, "dupe", routes(3), with_schemas=True)
        validator = ConsolidationValidator(self.store, ChildRecordIndex(self.store), strict_schemas=True)

        result = validator.validate(ConsolidationPlan("keep", ("dupe",)))

        self.assertFalse(result.safe_to_remove)
        self.assertEqual(result.unique_children_lost, [])

    def test_missing_integrations_are_rejected(self) -> None:
        add_integration(self.db, "keep", routes(1))

        with self.assertRaises(ResourcesMissing) as ctx:
            self.validator.validate(ConsolidationPlan("keep", ("gone",)))

        self.assertEqual(ctx.exception.missing_ids, ["gone"])

    def test_store_failure_is_fatal(self) -> None:
        add_integration(self.db, "keep", routes(1))
        add_integration(self.db, "dupe", routes(1))
        store = _UnavailableEndpointStore(self.db)
        validator = ConsolidationValidator(store, ChildRecordIndex(store))

        with self.assertRaises(StoreUnavailable):
            validator.validate(ConsolidationPlan("keep", ("dupe",)))

    def test_plan_rejects_keep_in_remove_list(self) -> None:
        with self.assertRaises(InvalidPlan):
            ConsolidationPlan("keep", ("keep", "dupe"))
        with self.assertRaises(InvalidPlan):
            ConsolidationPlan("keep", ())

    def test_plan_normalizes_remove_ids(self) -> None:
        plan = ConsolidationPlan(" keep ", ("b", " a", "b", ""))

        self.assertEqual(plan.keep_id, "keep")
        self.assertEqual(plan.remove_ids, ("b", "a"))
        self.assertEqual(plan.group_key, "a|b|keep")


class ChildRecordIndexTests(unittest.TestCase):
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

    def tearDown(self) -> None:
        self.db.close()

    def test_groups_endpoints_by_owner_including_empty_owners(self) -> None:
        add_integration(self.db, "a", routes(2))
        add_integration(self.db, "b", routes(3))
        add_integration(self.db, "c")
        add_integration(self.db, "unrelated", routes(4))

        grouped = ChildRecordIndex(RegistryStore(self.db)).load_for({"a", "b", "c"})

        self.assertEqual(sorted(grouped), ["a", "b", "c"])
        self.assertEqual(len(grouped["a"]), 2)
        self.assertEqual(len(grouped["b"]), 3)
        self.assertEqual(grouped["c"], [])

    def test_empty_request_reads_nothing(self) -> None:
        self.assertEqual(ChildRecordIndex(_UnavailableEndpointStore(self.db)).load_for(()), {})

    def test_read_failure_raises_instead_of_partial_map(self) -> None:
        add_integration(self.db, "a", routes(2))

        with self.assertRaises(StoreUnavailable):
            ChildRecordIndex(_UnavailableEndpointStore(self.db)).load_for({"a"})


if __name__ == "__main__":
    unittest.main()
