import numpy as np
import pandas as pd
import pytest

from rodent_sdm.errors import InsufficientDataError, ModelFitError
from rodent_sdm.models import fit_binomial_glm


@pytest.fixture
def logistic_data() -> pd.DataFrame:
    rng = np.random.default_rng(42)
    n = 2000
    bio1 = rng.normal(0, 1, n)
    bio2 = rng.normal(0, 1, n)
    probability = 1 / (1 + np.exp(-(-0.5 + 2.0 * bio1 - 1.0 * bio2)))
    presence = (rng.uniform(size=n) < probability).astype(int)
    return pd.DataFrame({"presence": presence, "bio1": bio1, "bio2": bio2})


@pytest.fixture
def separable_data() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "presence": [1, 1, 1, 1, 0, 0, 0],
            "bio1": [1.0, 1.0, 1.0, 1.0, 0.0, 0.0, 0.0],
        }
    )


def test_fit_recovers_coefficients(logistic_data):
    model = fit_binomial_glm(logistic_data, ["bio1", "bio2"])

    assert model.converged
    assert model.fit_warnings == []
    assert list(model.params.index) == ["const", "bio1", "bio2"]
    assert model.params["bio1"] == pytest.approx(2.0, abs=0.3)
    assert model.params["bio2"] == pytest.approx(-1.0, abs=0.3)


def test_predict_matches_statsmodels(logistic_data):
    model = fit_binomial_glm(logistic_data, ["bio1", "bio2"])
    expected = model.results.predict()
    assert np.allclose(model.predict(logistic_data), expected)


def test_predict_propagates_missing(logistic_data):
    model = fit_binomial_glm(logistic_data, ["bio1", "bio2"])
    rows = pd.DataFrame({"bio1": [0.0, np.nan], "bio2": [0.0, 1.0]})
    predictions = model.predict(rows)

    assert 0 < predictions[0] < 1
    assert np.isnan(predictions[1])


def test_predict_uses_covariate_names_not_position(logistic_data):
    model = fit_binomial_glm(logistic_data, ["bio1", "bio2"])
    shuffled = logistic_data[["bio2", "presence", "bio1"]]
    assert np.allclose(model.predict(shuffled), model.predict(logistic_data))


def test_missing_values_are_refused(logistic_data):
    logistic_data.loc[3, "bio2"] = np.nan
    with pytest.raises(InsufficientDataError):
        fit_binomial_glm(logistic_data, ["bio1", "bio2"])


def test_single_class_is_refused(logistic_data):
    logistic_data["presence"] = 1
    with pytest.raises(InsufficientDataError):
        fit_binomial_glm(logistic_data, ["bio1", "bio2"])


def test_missing_covariate_column(logistic_data):
    with pytest.raises(KeyError):
        fit_binomial_glm(logistic_data, ["bio1", "bio3"])


def test_perfect_separation_warns(separable_data, caplog):
    model = fit_binomial_glm(separable_data, ["bio1"])

    assert model.fit_warnings
    assert "fit problem" in caplog.text
    assert (model.predict(separable_data[separable_data["presence"] == 1]) > 0.5).all()
    assert (model.predict(separable_data[separable_data["presence"] == 0]) < 0.5).all()


def test_perfect_separation_raises_in_strict_mode(separable_data):
    with pytest.raises(ModelFitError):
        fit_binomial_glm(separable_data, ["bio1"], on_fit_problem="raise")


def test_unknown_fit_problem_action(logistic_data):
    with pytest.raises(ValueError):
        fit_binomial_glm(logistic_data, ["bio1"], on_fit_problem="ignore")


def test_iteration_cap_reports_non_convergence(logistic_data, caplog):
    model = fit_binomial_glm(logistic_data, ["bio1", "bio2"], max_iterations=1)

    assert model.converged is False
    assert "IRLS did not converge" in model.fit_warnings
    assert "fit problem" in caplog.text


def test_non_convergence_raises_in_strict_mode(logistic_data):
    with pytest.raises(ModelFitError, match="did not converge"):
        fit_binomial_glm(logistic_data, ["bio1", "bio2"], on_fit_problem="raise", max_iterations=1)
