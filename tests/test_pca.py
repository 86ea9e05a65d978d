import logging
from datetime import date

import numpy as np
import pytest
from numpy.testing import assert_allclose

from curvepca.data.curves import CurveObservation, yield_matrix
from curvepca.data.tenors import Tenor
from curvepca.engine.pca import PCAEngine, PCAResult
from curvepca.errors import NonNumericYieldError


def test_explained_variance_sums_to_one(mock_curves, all_tenors):
    pca = PCAEngine.fit(mock_curves, all_tenors)
    assert pca.explained_variance.sum() == pytest.approx(1.0)
    assert pca.cumulative_variance[-1] == pytest.approx(1.0)
    assert np.all(np.diff(pca.eigenvalues) <= 0)


def test_three_factors_explain_synthetic_curves(mock_curves, all_tenors):
    pca = PCAEngine.fit(mock_curves, all_tenors)
    assert pca.explained_variance[0] >= pca.explained_variance[1]
    assert pca.cumulative_variance[2] > 0.8


def test_eigenvectors_orthonormal(mock_curves, all_tenors):
    pca = PCAEngine.fit(mock_curves, all_tenors)
    gram = pca.eigenvectors @ pca.eigenvectors.T
    assert_allclose(gram, np.eye(len(all_tenors)), atol=1e-6)


def test_full_reconstruction_round_trip(mock_curves, all_tenors):
    pca = PCAEngine.fit(mock_curves, all_tenors)
    centered = yield_matrix(mock_curves, all_tenors) - pca.mean_vector
    rebuilt = pca.scores @ pca.eigenvectors
    assert_allclose(rebuilt, centered, atol=1e-8)


def test_sign_conventions(mock_curves, all_tenors):
    v = PCAEngine.fit(mock_curves, all_tenors).eigenvectors
    assert v[0].sum() >= 0
    assert v[1][-1] - v[1][0] >= 0
    assert v[2][len(v[2]) // 2] >= (v[2][0] + v[2][-1]) / 2


def test_align_signs_is_idempotent(mock_curves, all_tenors):
    v = PCAEngine.fit(mock_curves, all_tenors).eigenvectors
    assert_allclose(PCAEngine.align_signs(v), v)
    assert_allclose(PCAEngine.align_signs(-v)[:3], v[:3])


def test_align_signs_leaves_higher_components():
    v = -np.eye(4)
    aligned = PCAEngine.align_signs(v)
    assert_allclose(aligned[3], v[3])


def test_refit_is_deterministic(mock_curves, all_tenors):
    a = PCAEngine.fit(mock_curves, all_tenors)
    b = PCAEngine.fit(mock_curves, all_tenors)
    assert_allclose(a.eigenvectors, b.eigenvectors)
    assert_allclose(a.scores, b.scores)


def test_empty_input_gives_empty_result(all_tenors):
    pca = PCAEngine.fit([], all_tenors)
    assert pca.is_empty
    assert pca.tenors == tuple(all_tenors)
    assert pca.scores.size == 0


def test_constant_data_has_zero_explained_variance(make_curves):
    tenors = [Tenor.Y2, Tenor.Y5, Tenor.Y10]
    obs = make_curves(np.tile([4.0, 4.2, 4.4], (10, 1)), tenors)
    pca = PCAEngine.fit(obs, tenors)
    assert not np.isnan(pca.explained_variance).any()
    assert not pca.explained_variance.any()


def test_non_numeric_values_read_as_zero(caplog):
    tenors = [Tenor.Y2, Tenor.Y5, Tenor.Y10]
    obs = [
        CurveObservation(date(2024, 1, 1), {"2Y": 4.0, "5Y": 4.1, "10Y": 4.2}),
        CurveObservation(date(2024, 1, 2), {"2Y": 4.1, "5Y": "n/a", "10Y": 4.3}),
        CurveObservation(date(2024, 1, 3), {"2Y": 4.2, "10Y": 4.1}),
    ]
    with caplog.at_level("WARNING"):
        pca = PCAEngine.fit(obs, tenors)
    assert not np.isnan(pca.scores).any()
    assert pca.mean_vector[1] == pytest.approx(4.1 / 3)
    assert "Non-numeric yield" in caplog.text


def test_strict_mode_rejects_non_numeric():
    obs = [CurveObservation(date(2024, 1, 1), {"2Y": 4.0, "5Y": "abc", "10Y": 4.2})]
    with pytest.raises(NonNumericYieldError):
        PCAEngine.fit(obs, ["2Y", "5Y", "10Y"], strict=True)


def test_rolling_full_window_equals_static_fit(mock_curves, all_tenors):
    static = PCAEngine.fit(mock_curves, all_tenors)
    rolling = PCAEngine.fit_rolling(mock_curves, all_tenors, window_size=len(mock_curves))
    assert len(rolling) == 1
    assert rolling.index[0].date() == mock_curves[-1].date
    assert_allclose(rolling.iloc[0].values, static.explained_variance)


def test_rolling_windows_and_columns(mock_curves, all_tenors):
    rolling = PCAEngine.fit_rolling(mock_curves, all_tenors, window_size=60)
    assert len(rolling) == len(mock_curves) - 60 + 1
    assert list(rolling.columns[:3]) == ["PC1", "PC2", "PC3"]
    assert rolling.index.is_monotonic_increasing
    assert_allclose(rolling.sum(axis=1), 1.0)


def test_rolling_with_too_little_data_is_empty(mock_curves, all_tenors):
    assert PCAEngine.fit_rolling(mock_curves[:10], all_tenors, window_size=30).empty
    assert PCAEngine.fit_rolling_loadings(mock_curves[:10], all_tenors, window_size=30) == []


def test_rolling_loadings_are_aligned(mock_curves, all_tenors):
    loadings = PCAEngine.fit_rolling_loadings(mock_curves, all_tenors, window_size=30)
    assert len(loadings) == len(mock_curves) - 30 + 1
    for window in loadings:
        assert window.level.sum() >= 0
        assert window.slope[-1] - window.slope[0] >= 0
        assert_allclose(PCAEngine.align_signs(window.loadings), window.loadings)


def test_frames(mock_curves, all_tenors):
    pca = PCAEngine.fit(mock_curves, all_tenors)
    loadings = pca.loadings_frame()
    assert list(loadings.columns) == [t.value for t in all_tenors]
    assert loadings.index[0] == "PC1"
    scores = pca.scores_frame([o.date for o in mock_curves])
    assert scores.shape == (len(mock_curves), len(all_tenors))


def test_empty_result_helpers():
    pca = PCAResult.empty([Tenor.Y2, Tenor.Y10])
    assert pca.n_components == 0
    assert pca.loadings_frame().empty


def test_rolling_reports_unconverged_windows_once(capped_solver, mock_curves, all_tenors, caplog):
    with caplog.at_level(logging.DEBUG):
        rolling = PCAEngine.fit_rolling(mock_curves, all_tenors, window_size=30)
        loadings = PCAEngine.fit_rolling_loadings(mock_curves, all_tenors, window_size=30)
    warnings = [r.getMessage() for r in caplog.records if r.levelno >= logging.WARNING]
    assert len(rolling) == len(loadings) == 92
    assert warnings == [
        "Rolling variance: Jacobi solver hit the iteration cap in 92 of 92 windows",
        "Rolling loadings: Jacobi solver hit the iteration cap in 92 of 92 windows",
    ]


def test_single_fit_still_warns(capped_solver, mock_curves, all_tenors, caplog):
    with caplog.at_level(logging.WARNING):
        pca = PCAEngine.fit(mock_curves, all_tenors)
    assert not pca.converged
    assert "Jacobi solver stopped" in caplog.text
