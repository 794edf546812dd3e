"""Tests for HBaseIndexConfig."""

import math
import unittest

from hbase_index.config import HBaseIndexConfig
from hbase_index.errors import ConfigurationError


class TestConfigValidation(unittest.TestCase):
    """Verify invalid values are rejected on construction."""

    def test_defaults_are_valid(self):
        """The default config should construct without error."""
        config = HBaseIndexConfig()
        self.assertEqual(config.qps_fraction, 0.5)
        self.assertIsNone(config.allocator_class_name)
        self.assertEqual(config.get_batch_size, 100)

    def test_qps_fraction_out_of_range(self):
        """qps_fraction outside (0, 1] should raise ConfigurationError."""
        for bad in (0.0, -0.1, 1.01, math.nan, math.inf):
            with self.assertRaises(ConfigurationError):
                HBaseIndexConfig(qps_fraction=bad)

    def test_fraction_of_one_is_valid(self):
        """The whole cluster is an acceptable fraction."""
        self.assertEqual(HBaseIndexConfig(qps_fraction=1.0).qps_fraction, 1.0)

    def test_min_above_max(self):
        """min_qps_fraction above max_qps_fraction should be rejected."""
        with self.assertRaises(ConfigurationError):
            HBaseIndexConfig(min_qps_fraction=0.5, max_qps_fraction=0.2)

    def test_batch_size_must_be_positive(self):
        """A zero get batch size should be rejected."""
        with self.assertRaises(ConfigurationError):
            HBaseIndexConfig(get_batch_size=0)

    def test_missing_numbers_are_rejected(self):
        """None or a non-number in a numeric field should raise ConfigurationError, not TypeError."""
        cases = (
            ("qps_fraction", None),
            ("get_batch_size", None),
            ("sleep_ms_between_batches", "100"),
            ("parallelism", True),
        )
        for field, bad in cases:
            with self.subTest(field=field):
                with self.assertRaises(ConfigurationError):
                    HBaseIndexConfig(**{field: bad})

    def test_configuration_error_is_value_error(self):
        """Callers catching ValueError should also catch ConfigurationError."""
        with self.assertRaises(ValueError):
            HBaseIndexConfig(parallelism=0)


class TestFromProperties(unittest.TestCase):
    """Verify building a config from a flat property map."""

    def test_hoodie_keys_are_coerced(self):
        """String values under the long keys should be converted to field types."""
        config = HBaseIndexConfig.from_properties(
            {
                "hoodie.index.hbase.qps.fraction": "0.3",
                "hoodie.index.hbase.get.batch.size": "250",
                "hoodie.index.hbase.put.batch.size.autocompute": "true",
                "hoodie.index.hbase.qps.allocator.class": "CappedQPSResourceAllocator",
            }
        )
        self.assertEqual(config.qps_fraction, 0.3)
        self.assertEqual(config.get_batch_size, 250)
        self.assertTrue(config.put_batch_size_autocompute)
        self.assertEqual(config.allocator_class_name, "CappedQPSResourceAllocator")

    def test_short_aliases(self):
        """qpsFraction, allocatorClassName and getBatchSize should be accepted."""
        config = HBaseIndexConfig.from_properties(
            {"qpsFraction": 0.3, "allocatorClassName": "InvalidResourceAllocatorClassName", "getBatchSize": 100}
        )
        self.assertEqual(config.qps_fraction, 0.3)
        self.assertEqual(config.allocator_class_name, "InvalidResourceAllocatorClassName")
        self.assertEqual(config.get_batch_size, 100)

    def test_field_names_and_unknown_keys(self):
        """Field names should work directly and unrelated keys should be ignored."""
        config = HBaseIndexConfig.from_properties({"table_name": "trips", "spark.executor.cores": "4"})
        self.assertEqual(config.table_name, "trips")

    def test_empty_allocator_becomes_none(self):
        """An empty allocator value should mean unset."""
        config = HBaseIndexConfig.from_properties({"allocatorClassName": ""})
        self.assertIsNone(config.allocator_class_name)

    def test_none_values_keep_defaults(self):
        """A key present with a None value should be treated as unset."""
        config = HBaseIndexConfig.from_properties({"qpsFraction": None, "hoodie.index.hbase.get.batch.size": None})
        self.assertEqual(config.qps_fraction, 0.5)
        self.assertEqual(config.get_batch_size, 100)

    def test_malformed_values(self):
        """Unparseable numbers and booleans should raise ConfigurationError."""
        with self.assertRaises(ConfigurationError):
            HBaseIndexConfig.from_properties({"qpsFraction": "lots"})
        with self.assertRaises(ConfigurationError):
            HBaseIndexConfig.from_properties({"hoodie.index.hbase.put.batch.size.autocompute": "maybe"})

    def test_round_trip_through_properties(self):
        """to_properties() output should rebuild an equal config."""
        config = HBaseIndexConfig(qps_fraction=0.3, get_batch_size=77, allocator_class_name="CappedQPSResourceAllocator")
        self.assertEqual(HBaseIndexConfig.from_properties(config.to_properties()), config)


if __name__ == "__main__":
    unittest.main()
