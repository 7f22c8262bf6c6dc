import unittest
from unittest import TestCase

from src.rankbn.domain._errors import ShapeError
from src.rankbn.infrastructure.ops._shape_broadcast import (
    batchnorm_reshape_4d,
    canonicalize_input_4d,
    check_broadcastable,
    restore_shape,
)
from src.rankbn.infrastructure.tensor import Tensor


class TestCanonicalizeInput4D(TestCase):
    def test_rank0(self):
        self.assertEqual(canonicalize_input_4d(Tensor(())).shape, (1, 1, 1, 1))

    def test_rank1(self):
        self.assertEqual(canonicalize_input_4d(Tensor((5,))).shape, (1, 1, 1, 5))

    def test_rank2(self):
        self.assertEqual(canonicalize_input_4d(Tensor((2, 3))).shape, (1, 1, 2, 3))

    def test_rank3(self):
        self.assertEqual(
            canonicalize_input_4d(Tensor((2, 3, 4))).shape, (1, 2, 3, 4)
        )

    def test_rank4_is_passed_through(self):
        x = Tensor((2, 3, 4, 5))
        self.assertIs(canonicalize_input_4d(x), x)

    def test_rank5_is_passed_through(self):
        x = Tensor((1, 2, 3, 4, 5))
        self.assertIs(canonicalize_input_4d(x), x)

    def test_canonical_input_is_a_view(self):
        x = Tensor((2, 3))
        self.assertTrue(canonicalize_input_4d(x).shares_storage_with(x))

    def test_round_trip_restores_shape_for_every_rank(self):
        for shape in [(), (7,), (2, 3), (2, 3, 4), (2, 3, 4, 5)]:
            with self.subTest(shape=shape):
                x = Tensor(shape)
                x4d = canonicalize_input_4d(x)
                self.assertEqual(x4d.rank, 4)
                self.assertEqual(x4d.size, x.size)
                self.assertEqual(restore_shape(x4d, x.shape).shape, shape)


class TestBatchnormReshape4D(TestCase):
    def test_absent_passes_through(self):
        self.assertIsNone(batchnorm_reshape_4d(None))

    def test_rank0_becomes_rank1(self):
        self.assertEqual(batchnorm_reshape_4d(Tensor(())).shape, (1,))

    def test_rank1_unchanged(self):
        t = Tensor((4,))
        self.assertIs(batchnorm_reshape_4d(t), t)

    def test_rank2(self):
        self.assertEqual(batchnorm_reshape_4d(Tensor((2, 3))).shape, (1, 1, 2, 3))

    def test_rank3(self):
        self.assertEqual(
            batchnorm_reshape_4d(Tensor((2, 3, 4))).shape, (1, 2, 3, 4)
        )

    def test_rank4_and_higher_unchanged(self):
        for shape in [(1, 2, 3, 4), (1, 1, 2, 3, 4)]:
            with self.subTest(shape=shape):
                t = Tensor(shape)
                self.assertIs(batchnorm_reshape_4d(t), t)

    def test_matches_input_canonicalization_at_equal_rank(self):
        for shape in [(2, 3), (2, 3, 4)]:
            with self.subTest(shape=shape):
                self.assertEqual(
                    batchnorm_reshape_4d(Tensor(shape)).shape,
                    canonicalize_input_4d(Tensor(shape)).shape,
                )


class TestCheckBroadcastable(TestCase):
    def test_channel_vector_accepted(self):
        check_broadcastable("mean", (4,), (1, 2, 3, 4))

    def test_length_one_vector_accepted(self):
        check_broadcastable("mean", (1,), (1, 2, 3, 4))

    def test_full_shape_accepted(self):
        check_broadcastable("scale", (1, 2, 3, 4), (1, 2, 3, 4))

    def test_singleton_axes_accepted(self):
        check_broadcastable("offset", (1, 1, 1, 4), (2, 3, 5, 4))

    def test_wrong_channel_length_rejected(self):
        with self.assertRaises(ShapeError) as cm:
            check_broadcastable("mean", (3,), (1, 2, 3, 4))
        self.assertEqual(cm.exception.role, "mean")
        self.assertEqual(cm.exception.expected, (1, 2, 3, 4))
        self.assertEqual(cm.exception.actual, (3,))

    def test_enlarging_parameter_rejected(self):
        with self.assertRaises(ShapeError):
            check_broadcastable("variance", (2, 2, 3, 4), (1, 2, 3, 4))


if __name__ == "__main__":
    unittest.main()
