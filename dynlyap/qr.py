"""
Reduced QR decompositions of tall deviation-vector matrices.

Both routines return Q with orthonormal columns and an upper triangular R with a
non-negative diagonal, so that W = Q @ R. The diagonal of R holds the stretching
factor of each direction since the previous orthonormalization.
"""

import numpy as np

from .errors import ConfigurationError


def _check_tall(W):
    W = np.array(W, dtype=float)
    if W.ndim == 1:
        W = W[:, None]
    if W.ndim != 2:
        raise ConfigurationError(f"Expected a D x k matrix, got shape {W.shape}")
    d, k = W.shape
    if k > d:
        raise ConfigurationError(
            f"Cannot orthonormalize {k} vectors in a {d}-dimensional space"
        )
    return W


def qr_gram_schmidt(W, reorthogonalize=True):
    """
    QR decomposition by modified Gram-Schmidt, processing the columns in order.

    Column i of Q depends only on columns 1..i of W, so the leading directions are
    unaffected by how many trailing vectors are tracked.

    Args:
        W (ndarray): A D x k matrix with k <= D
        reorthogonalize (bool): Run a second projection sweep on each column, which
            keeps Q orthonormal to working precision when the columns of W differ in
            magnitude by many orders.

    Returns:
        Q (ndarray): D x k matrix with orthonormal columns
        R (ndarray): k x k upper triangular matrix with non-negative diagonal

    Note:
        A column that is numerically zero after projection gives R[i, i] = 0 and a
        zero column in Q. This is not corrected here; it means the vectors
        collapsed onto each other between orthonormalizations.
    """
    Q = _check_tall(W)
    k = Q.shape[1]
    R = np.zeros((k, k))
    sweeps = 2 if reorthogonalize else 1
    for j in range(k):
        for _ in range(sweeps):
            for i in range(j):
                proj = Q[:, i] @ Q[:, j]
                R[i, j] += proj
                Q[:, j] -= proj * Q[:, i]
        norm = np.linalg.norm(Q[:, j])
        R[j, j] = norm
        if norm > 0:
            Q[:, j] /= norm
        else:
            Q[:, j] = 0.0
    return Q, R


def qr_householder(W):
    """
    QR decomposition by Householder reflections (LAPACK, through numpy), with the
    signs fixed so that R has a non-negative diagonal.

    Args:
        W (ndarray): A D x k matrix with k <= D

    Returns:
        Q (ndarray): D x k matrix with orthonormal columns
        R (ndarray): k x k upper triangular matrix with non-negative diagonal
    """
    W = _check_tall(W)
    Q, R = np.linalg.qr(W, mode="reduced")
    signs = np.sign(np.diag(R))
    signs[signs == 0] = 1.0
    return Q * signs, R * signs[:, None]


QR_METHODS = {
    "gram-schmidt": qr_gram_schmidt,
    "householder": qr_householder,
}


def orthonormalize(W, method="gram-schmidt"):
    """Compute W = Q @ R with the named method, "gram-schmidt" or "householder" """
    try:
        qr_fn = QR_METHODS[method]
    except KeyError:
        raise ConfigurationError(
            f"Unknown QR method {method!r}, must be one of {sorted(QR_METHODS)}"
        ) from None
    return qr_fn(W)
