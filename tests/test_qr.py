import unittest

import numpy as np

from dynlyap.errors import ConfigurationError
from dynlyap.qr import orthonormalize, qr_gram_schmidt, qr_householder

QR_FUNCTIONS = {"gram-schmidt": qr_gram_schmidt, "householder": qr_householder}


class TestOrthonormalizer(unittest.TestCase):
    def setUp(self):
        rng = np.random.default_rng(0)
        self.tall = rng.normal(size=(6, 3))
        self.square = np.array([[2.0, 1.0, 0.0], [0.0, 3.0, 1.0], [1.0, 0.0, 1.0]])

    def check_factorization(self, W, Q, R):
        k = W.shape[1]
        self.assertEqual(Q.shape, W.shape)
        self.assertEqual(R.shape, (k, k))
        self.assertTrue(np.allclose(Q.T @ Q, np.identity(k), atol=1e-12))
        self.assertTrue(np.allclose(Q @ R, W, atol=1e-12))
        self.assertTrue(np.allclose(np.tril(R, -1), 0.0))
        self.assertTrue(np.all(np.diag(R) >= 0))

    def test_factorization(self):
        for name, qr_fn in QR_FUNCTIONS.items():
            for W in (self.tall, self.square):
                with self.subTest(method=name, shape=W.shape):
                    Q, R = qr_fn(W)
                    self.check_factorization(W, Q, R)

    def test_methods_agree(self):
        Q1, R1 = qr_gram_schmidt(self.tall)
        Q2, R2 = qr_householder(self.tall)
        self.assertTrue(np.allclose(Q1, Q2, atol=1e-12))
        self.assertTrue(np.allclose(R1, R2, atol=1e-12))

    def test_input_unchanged(self):
        W = self.tall.copy()
        qr_gram_schmidt(W)
        self.assertTrue(np.array_equal(W, self.tall))

    def test_upper_triangular_input(self):
        W = np.array([[0.5, 1.0], [0.0, 0.25]])
        Q, R = orthonormalize(W)
        self.assertTrue(np.allclose(Q, np.identity(2)))
        self.assertTrue(np.allclose(R, W))

    def test_widely_scaled_columns(self):
        W = self.tall * np.array([1.0, 1e-6, 1e-12])
        Q, R = qr_gram_schmidt(W)
        self.assertTrue(np.allclose(Q.T @ Q, np.identity(3), atol=1e-10))
        self.assertTrue(np.allclose(np.diag(R), np.diag(qr_householder(W)[1]), rtol=1e-6))

    def test_single_vector(self):
        Q, R = orthonormalize(np.array([3.0, 4.0]))
        self.assertEqual(Q.shape, (2, 1))
        self.assertAlmostEqual(R[0, 0], 5.0)
        self.assertTrue(np.allclose(Q[:, 0], [0.6, 0.8]))

    def test_collapsed_column(self):
        W = np.array([[1.0, 2.0], [0.0, 0.0], [0.0, 0.0]])
        Q, R = qr_gram_schmidt(W)
        self.assertAlmostEqual(R[1, 1], 0.0)
        self.assertTrue(np.allclose(Q[:, 1], 0.0))

    def test_too_many_vectors(self):
        with self.assertRaises(ConfigurationError):
            orthonormalize(np.ones((2, 3)))
        with self.assertRaises(ConfigurationError):
            qr_householder(np.ones((2, 3)))

    def test_unknown_method(self):
        with self.assertRaises(ConfigurationError):
            orthonormalize(self.tall, method="givens")


if __name__ == "__main__":
    unittest.main()
