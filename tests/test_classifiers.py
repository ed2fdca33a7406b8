"""
Tests for the rank-based classifiers, the kernel machines and the kernels.
"""

import numpy as np
import pytest
from sklearn.metrics import accuracy_score

from classifiers import (
    AllPairsMajorityVote,
    KernelFisherDiscriminant,
    SVMClassifier,
    TopScoringPairs,
    compute_kernel,
    estimate_rbf_gamma,
    scaled_rbf_gamma
)
from utils.preprocessing import generate_synthetic_dataset


def _two_blobs(n_per_class=20, n_features=5, distance=6.0, seed=42):
    np.random.seed(seed)
    X0 = np.random.normal(0, 1, (n_per_class, n_features))
    X1 = np.random.normal(distance, 1, (n_per_class, n_features))
    X = np.vstack([X0, X1])
    y = np.repeat([0, 1], n_per_class)
    return X, y


def test_tsp_finds_planted_pair(planted_pair_data):
    X, y = planted_pair_data

    model = TopScoringPairs(k=1).fit(X, y)

    assert model.pairs_.tolist() == [[0, 1]]
    assert model.scores_[0] == pytest.approx(1.0)
    # Gene 0 below gene 1 means class 0
    assert model.below_class_[0] == 0
    assert model.score(X, y) == 1.0


def test_ktsp_pairs_are_disjoint(planted_pair_data):
    X, y = planted_pair_data

    model = TopScoringPairs(k=5).fit(X, y)

    assert model.n_pairs_ == 5
    genes = model.pairs_.ravel()
    assert len(set(genes)) == len(genes)
    assert model.pairs_[0].tolist() == [0, 1]
    # Scores are non-increasing
    assert np.all(np.diff(model.scores_) <= 1e-12)


def test_ktsp_prefix_prediction_matches_tsp(planted_pair_data):
    """Predicting with the first pair of a kTSP fit equals the single-pair TSP."""
    X, y = planted_pair_data

    ktsp = TopScoringPairs(k=5).fit(X, y)
    tsp = TopScoringPairs(k=1).fit(X, y)

    np.testing.assert_array_equal(ktsp.predict(X, n_pairs=1), tsp.predict(X))
    assert ktsp.pair_votes(X).shape == (X.shape[0], 5)


def test_ktsp_caps_k_at_available_pairs():
    np.random.seed(1)
    X = np.random.normal(0, 1, (10, 4))
    y = np.repeat([0, 1], 5)

    model = TopScoringPairs(k=5).fit(X, y)

    assert model.n_pairs_ == 2


def test_tsp_prefilter_keeps_original_gene_indices():
    """Pairs found among prefiltered genes are reported with their original indices."""
    np.random.seed(3)
    y = np.repeat([0, 1], 20)
    noise = np.random.normal(10, 1, (40, 30))
    low_high = np.where(y == 0, 9.8, 10.2) + np.random.normal(0, 0.05, 40)
    high_low = np.where(y == 0, 10.2, 9.8) + np.random.normal(0, 0.05, 40)
    X = np.column_stack([noise, low_high, high_low])

    model = TopScoringPairs(k=1, max_genes=6).fit(X, y)

    assert model.pairs_.tolist() == [[30, 31]]
    assert model.below_class_[0] == 0


def test_tsp_is_invariant_to_monotone_transform(planted_pair_data):
    X, y = planted_pair_data

    raw = TopScoringPairs(k=3).fit(X, y)
    logged = TopScoringPairs(k=3).fit(np.log(X - X.min() + 1.0), y)

    np.testing.assert_array_equal(raw.pairs_, logged.pairs_)


def test_tsp_rejects_multiclass():
    X = np.random.normal(0, 1, (9, 4))
    y = np.array([0, 1, 2] * 3)

    with pytest.raises(ValueError):
        TopScoringPairs().fit(X, y)


def test_tsp_not_fitted():
    with pytest.raises(ValueError):
        TopScoringPairs().predict(np.ones((2, 4)))


def test_apmv_on_synthetic_data():
    dataset = generate_synthetic_dataset('bc', n_samples=80, n_genes=50,
                                         test_fraction=0.3, random_state=5)

    model = AllPairsMajorityVote(max_genes=20).fit(dataset.xtrain, dataset.ytrain)
    predictions = model.predict(dataset.xtest)

    assert model.directions_.shape == (20, 20)
    assert accuracy_score(dataset.ytest, predictions) >= 0.8


def test_apmv_votes_of_reversed_profiles():
    """Class 0 orders genes increasingly, class 1 decreasingly: all three pairs agree."""
    X = np.array([[1.0, 2.0, 3.0],
                  [1.5, 2.5, 3.5],
                  [3.0, 2.0, 1.0],
                  [3.5, 2.5, 1.5]])
    y = np.array([0, 0, 1, 1])

    model = AllPairsMajorityVote(max_genes=None).fit(X, y)

    np.testing.assert_allclose(model.decision_function(X), [3, 3, -3, -3])
    assert model.predict(X).tolist() == [0, 0, 1, 1]


def test_apmv_tied_genes_do_not_vote():
    """Equal expression of both genes of a pair gives no vote to either class."""
    X = np.array([[1.0, 2.0],
                  [1.0, 3.0],
                  [2.0, 1.0],
                  [3.0, 1.0]])
    y = np.array([0, 0, 1, 1])

    model = AllPairsMajorityVote(max_genes=None).fit(X, y)

    np.testing.assert_allclose(model.decision_function(np.array([[1.5, 1.5]])), [0.0])
    np.testing.assert_allclose(model.decision_function(X), [1, 1, -1, -1])


def test_apmv_tie_goes_to_majority_class():
    """With all pair directions undefined every sample ties."""
    X = np.tile(np.arange(4.0), (7, 1))
    y = np.array([0, 0, 1, 1, 1, 1, 1])

    model = AllPairsMajorityVote().fit(X, y)

    np.testing.assert_allclose(model.decision_function(X), 0.0)
    assert model.predict(X).tolist() == [1] * 7


def test_apmv_keeps_original_labels(planted_pair_data):
    X, y = planted_pair_data
    labels = np.where(y == 0, 'normal', 'tumor')

    model = AllPairsMajorityVote(max_genes=2).fit(X, labels)

    assert set(model.predict(X)) <= {'normal', 'tumor'}


def test_svm_on_precomputed_linear_kernel():
    X, y = _two_blobs()
    K = compute_kernel('linear', X)

    model = SVMClassifier(C=1.0).fit(K, y)

    assert model.score(K, y) == 1.0
    assert model.decision_function(K).shape == (40,)


def test_svm_not_fitted():
    with pytest.raises(ValueError):
        SVMClassifier().predict(np.eye(3))


def test_svm_rejects_non_square_kernel():
    with pytest.raises(ValueError):
        SVMClassifier().fit(np.ones((4, 3)), np.array([0, 1, 0, 1]))


def test_kfd_separates_blobs():
    X, y = _two_blobs(distance=4.0)
    K = compute_kernel('linear', X)

    model = KernelFisherDiscriminant().fit(K, y)

    assert model.score(K, y) == 1.0
    assert np.all(model.decision_function(K[y == 1]) > 0)


def test_kfd_generalizes():
    X, y = _two_blobs(distance=4.0, seed=0)
    X_test, y_test = _two_blobs(distance=4.0, seed=1)

    model = KernelFisherDiscriminant().fit(compute_kernel('linear', X), y)
    predictions = model.predict(compute_kernel('linear', X_test, X))

    assert accuracy_score(y_test, predictions) >= 0.9


def test_kfd_rejects_multiclass():
    K = np.eye(6)
    with pytest.raises(ValueError):
        KernelFisherDiscriminant().fit(K, np.array([0, 1, 2, 0, 1, 2]))


def test_compute_kernel_shapes_and_properties():
    np.random.seed(42)
    X = np.random.normal(0, 1, (8, 12))
    Y = np.random.normal(0, 1, (3, 12))

    for kernel in ('linear', 'kdt', 'poly'):
        assert compute_kernel(kernel, X).shape == (8, 8)
        assert compute_kernel(kernel, Y, X).shape == (3, 8)

    K_rbf = compute_kernel('rbf', X, gamma=0.1)
    np.testing.assert_allclose(np.diag(K_rbf), 1.0)
    np.testing.assert_allclose(np.diag(compute_kernel('kdt', X)), 1.0)

    K_poly = compute_kernel('poly', X, degree=2)
    expected = (X @ X.T / X.shape[1] + 1.0) ** 2
    np.testing.assert_allclose(K_poly, expected)


def test_compute_kernel_errors():
    X = np.ones((3, 4))

    with pytest.raises(ValueError):
        compute_kernel('sigmoid', X)
    with pytest.raises(ValueError):
        compute_kernel('rbf', X)


def test_estimate_rbf_gamma():
    np.random.seed(42)
    X = np.random.normal(0, 1, (30, 50))

    gamma = estimate_rbf_gamma(X, random_state=0)

    assert gamma > 0
    assert gamma == estimate_rbf_gamma(X, random_state=0)
    # Squared distances are about 2 * n_genes
    assert 1.0 / 400 < gamma < 1.0 / 25


def test_estimate_rbf_gamma_identical_samples():
    with pytest.raises(ValueError):
        estimate_rbf_gamma(np.ones((5, 3)))


def test_scaled_rbf_gamma():
    assert scaled_rbf_gamma(0.01, 1000, 10) == pytest.approx(1.0)

    with pytest.raises(ValueError):
        scaled_rbf_gamma(0.01, 1000, 0)
