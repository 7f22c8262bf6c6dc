import unittest
from unittest import TestCase

from src.rankbn.domain._errors import ShapeError
from src.rankbn.infrastructure._config import DispatchConfig, reset_config, set_config
from src.rankbn.infrastructure._operation import (
    OperationTape,
    get_operation,
    operation,
    record_operations,
    registered_operations,
)
from src.rankbn.infrastructure.ops._batchnorm import (
    batch_normalization,
    batch_normalization_2d,
)
from src.rankbn.infrastructure.tensor import Tensor


@operation("tape_test_double")
def _double(x: int, *, factor: int = 2) -> int:
    return x * factor


class TestOperationRegistry(TestCase):
    def test_public_operations_registered(self):
        names = registered_operations()
        for name in (
            "batch_normalization",
            "batch_normalization_2d",
            "batch_normalization_3d",
            "batch_normalization_4d",
        ):
            self.assertIn(name, names)

    def test_get_operation(self):
        self.assertIs(get_operation("batch_normalization"), batch_normalization)
        self.assertIs(get_operation("tape_test_double"), _double)

    def test_unknown_operation(self):
        with self.assertRaises(KeyError):
            get_operation("does_not_exist")

    def test_duplicate_name_rejected(self):
        with self.assertRaises(ValueError):
            operation("batch_normalization")(lambda x: x)

    def test_wrapper_preserves_metadata(self):
        self.assertEqual(batch_normalization_2d.__name__, "batch_normalization_2d")
        self.assertEqual(batch_normalization_2d.op_name, "batch_normalization_2d")
        self.assertIn("rank-2", batch_normalization_2d.__doc__)

    def test_wrapper_is_transparent_without_tape(self):
        self.assertEqual(_double(3), 6)
        self.assertEqual(_double(3, factor=3), 9)


class TestOperationTape(TestCase):
    def setUp(self) -> None:
        set_config(DispatchConfig())

    def tearDown(self) -> None:
        reset_config()

    def test_records_non_tensor_call(self):
        with record_operations() as tape:
            _double(4)
        self.assertEqual(tape.names(), ["tape_test_double"])
        rec = tape.records[0]
        self.assertEqual(rec.inputs, {})
        self.assertEqual(rec.args, {"x": 4, "factor": 2})
        self.assertEqual(rec.output, 8)
        self.assertEqual(rec.depth, 0)

    def test_nested_calls_recorded_in_call_order(self):
        x, mean, var = Tensor((2, 3)), Tensor((3,)), Tensor((3,))
        with record_operations() as tape:
            y = batch_normalization_2d(x, mean, var, 0.01)

        self.assertEqual(tape.names(), ["batch_normalization_2d", "batch_normalization"])
        self.assertEqual([r.depth for r in tape.records], [0, 1])

        outer = tape.records[0]
        self.assertIs(outer.inputs["x"], x)
        self.assertIs(outer.inputs["mean"], mean)
        self.assertIsNone(outer.inputs["scale"])
        self.assertIsNone(outer.inputs["offset"])
        self.assertEqual(outer.args["variance_epsilon"], 0.01)
        self.assertIsNone(outer.args["engine"])
        self.assertIs(outer.output, y)
        self.assertEqual(tape.records[1].output.shape, (2, 3))

    def test_failed_call_keeps_error(self):
        with record_operations() as tape:
            with self.assertRaises(ShapeError):
                batch_normalization_2d(Tensor((2, 3, 4)), Tensor((4,)), Tensor((4,)))

        self.assertEqual(tape.names(), ["batch_normalization_2d"])
        self.assertIsInstance(tape.records[0].error, ShapeError)
        self.assertIsNone(tape.records[0].output)

    def test_nothing_recorded_outside_block(self):
        with record_operations() as tape:
            pass
        _double(1)
        self.assertEqual(len(tape), 0)

    def test_nested_tapes_each_receive_records(self):
        with record_operations() as outer:
            _double(1)
            with record_operations() as inner:
                _double(2)
        self.assertEqual(len(outer), 2)
        self.assertEqual(len(inner), 1)

    def test_existing_tape_can_be_reused_and_cleared(self):
        tape = OperationTape()
        with record_operations(tape):
            _double(1)
        with record_operations(tape):
            _double(2)
        self.assertEqual(len(tape), 2)
        tape.clear()
        self.assertEqual(len(tape), 0)


if __name__ == "__main__":
    unittest.main()
