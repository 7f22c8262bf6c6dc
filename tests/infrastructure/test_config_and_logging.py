import logging
import unittest
from unittest import TestCase, mock

from src.rankbn.infrastructure import _logging
from src.rankbn.infrastructure._config import (
    DispatchConfig,
    dispatch_config,
    get_config,
    reset_config,
    set_config,
)


class TestDispatchConfigFromEnv(TestCase):
    def test_defaults(self):
        cfg = DispatchConfig.from_env({})
        self.assertTrue(cfg.strict_shapes)
        self.assertEqual(cfg.default_variance_epsilon, 1e-3)
        self.assertEqual(cfg.log_level, "WARNING")

    def test_strict_shapes_falsy_spellings(self):
        for value in ("0", "", "false", "False", "FALSE"):
            with self.subTest(value=value):
                cfg = DispatchConfig.from_env({"RANKBN_STRICT_SHAPES": value})
                self.assertFalse(cfg.strict_shapes)

    def test_strict_shapes_truthy(self):
        for value in ("1", "true", "yes"):
            with self.subTest(value=value):
                cfg = DispatchConfig.from_env({"RANKBN_STRICT_SHAPES": value})
                self.assertTrue(cfg.strict_shapes)

    def test_epsilon_and_level(self):
        cfg = DispatchConfig.from_env(
            {"RANKBN_DEFAULT_EPSILON": "1e-5", "RANKBN_LOG_LEVEL": "debug"}
        )
        self.assertEqual(cfg.default_variance_epsilon, 1e-5)
        self.assertEqual(cfg.log_level, "DEBUG")

    def test_invalid_epsilon(self):
        with self.assertRaises(ValueError):
            DispatchConfig.from_env({"RANKBN_DEFAULT_EPSILON": "abc"})
        with self.assertRaises(ValueError):
            DispatchConfig.from_env({"RANKBN_DEFAULT_EPSILON": "-1"})

    def test_reads_os_environ_by_default(self):
        with mock.patch.dict("os.environ", {"RANKBN_STRICT_SHAPES": "0"}):
            self.assertFalse(DispatchConfig.from_env().strict_shapes)


class TestActiveConfig(TestCase):
    def tearDown(self) -> None:
        reset_config()

    def test_get_config_is_cached(self):
        reset_config()
        self.assertIs(get_config(), get_config())

    def test_reset_rereads_environment(self):
        with mock.patch.dict("os.environ", {"RANKBN_DEFAULT_EPSILON": "0.5"}):
            reset_config()
            self.assertEqual(get_config().default_variance_epsilon, 0.5)
        reset_config()
        with mock.patch.dict("os.environ", {"RANKBN_DEFAULT_EPSILON": "0.25"}):
            self.assertEqual(get_config().default_variance_epsilon, 0.25)

    def test_set_config(self):
        cfg = DispatchConfig(strict_shapes=False)
        set_config(cfg)
        self.assertIs(get_config(), cfg)

    def test_dispatch_config_restores_previous(self):
        base = DispatchConfig()
        set_config(base)
        with dispatch_config(strict_shapes=False) as cfg:
            self.assertFalse(cfg.strict_shapes)
            self.assertIs(get_config(), cfg)
        self.assertIs(get_config(), base)

    def test_dispatch_config_restores_on_error(self):
        base = DispatchConfig()
        set_config(base)
        with self.assertRaises(RuntimeError):
            with dispatch_config(default_variance_epsilon=0.5):
                raise RuntimeError("boom")
        self.assertIs(get_config(), base)


class TestSetupLogging(TestCase):
    def tearDown(self) -> None:
        reset_config()

    def test_uses_configured_level_and_stdout_handler(self):
        set_config(DispatchConfig(log_level="DEBUG"))
        with mock.patch.object(logging, "basicConfig") as basic:
            _logging.setup_logging()
        kwargs = basic.call_args.kwargs
        self.assertEqual(kwargs["level"], "DEBUG")
        self.assertEqual(kwargs["format"], _logging.LOG_FORMAT)
        self.assertEqual(len(kwargs["handlers"]), 1)
        self.assertIsInstance(kwargs["handlers"][0], logging.StreamHandler)

    def test_explicit_level_wins(self):
        with mock.patch.object(logging, "basicConfig") as basic:
            _logging.setup_logging(logging.INFO)
        self.assertEqual(basic.call_args.kwargs["level"], logging.INFO)


if __name__ == "__main__":
    unittest.main()
