"""Tests for the structured model specification and its formula parser."""

import pytest

from estimators import ModelSpec, ModelSpecError, PowerSimError


class TestFromFormula:
    """Parsing of 'y ~ x + controls | fe | endo ~ instrument' strings."""

    def test_ols_with_fixed_effects(self):
        spec = ModelSpec.from_formula("y ~ x + c1 + c2 | city + month")

        assert spec.outcome == 'y'
        assert spec.exposure == 'x'
        assert spec.covariates == ('c1', 'c2')
        assert spec.fixed_effects == ('city', 'month')
        assert spec.instrument is None
        assert not spec.is_iv
        assert spec.formula == "y ~ x + c1 + c2 | city + month"

    def test_ols_without_fixed_effects(self):
        spec = ModelSpec.from_formula("y ~ x")
        assert spec.covariates == ()
        assert spec.fixed_effects == ()
        assert spec.formula == "y ~ x"

    def test_iv(self):
        spec = ModelSpec.from_formula("y ~ c1 | city | x ~ z")

        assert spec.is_iv
        assert spec.exposure == 'x'
        assert spec.instrument == 'z'
        assert spec.covariates == ('c1',)
        assert spec.formula == "y ~ c1 | city | x ~ z"
        assert spec.first_stage().formula == "x ~ z + c1 | city"

    def test_iv_without_covariates_or_fixed_effects(self):
        spec = ModelSpec.from_formula("y ~ 1 | x ~ z")
        assert spec.covariates == ()
        assert spec.fixed_effects == ()
        assert spec.formula == "y ~ 1 | x ~ z"

    def test_function_terms_keep_parentheses(self):
        spec = ModelSpec.from_formula("y ~ x + C(month, Treatment(1)) | city")
        assert spec.covariates == ('C(month, Treatment(1))',)

    def test_columns_skip_function_names(self):
        spec = ModelSpec.from_formula("log_y ~ np.log(x) + C(month) | city^year")
        assert spec.columns == ['log_y', 'x', 'month', 'city', 'year']

    def test_iv_columns_include_instrument(self):
        spec = ModelSpec.from_formula("y ~ c | city | x ~ z")
        assert set(spec.columns) == {'y', 'c', 'city', 'x', 'z'}

    @pytest.mark.parametrize("formula", [
        "y x",
        "y ~ x | a | b | c",
        "y ~ x ~ w",
        "y ~ x + | city",
        "y ~ c | x ~ z1 + z2",
        "y ~ c | x ~ z | city",
        "y ~ c | city | x ~ z | w ~ v",
        "y ~ (x + c | city",
        "y ~ 1",
    ])
    def test_malformed_formulas(self, formula):
        with pytest.raises(ModelSpecError):
            ModelSpec.from_formula(formula)


class TestValidation:
    """Construction-time checks."""

    def test_exposure_equals_outcome(self):
        with pytest.raises(ModelSpecError, match="also the outcome"):
            ModelSpec(outcome='y', exposure='y')

    def test_exposure_in_covariates(self):
        with pytest.raises(ModelSpecError):
            ModelSpec(outcome='y', exposure='x', covariates=('x', 'c'))

    def test_duplicated_covariates(self):
        with pytest.raises(ModelSpecError, match="Duplicated"):
            ModelSpec(outcome='y', exposure='x', covariates=('c', 'c'))

    def test_instrument_must_be_excluded(self):
        with pytest.raises(ModelSpecError, match="excluded"):
            ModelSpec(outcome='y', exposure='x', covariates=('c',), instrument='c')

    def test_invalid_vcov(self):
        with pytest.raises(ModelSpecError, match="vcov"):
            ModelSpec(outcome='y', exposure='x', vcov='bootstrap')

    def test_empty_term(self):
        with pytest.raises(ModelSpecError):
            ModelSpec(outcome=' ', exposure='x')

    def test_string_covariate_becomes_tuple(self):
        spec = ModelSpec(outcome='y', exposure='x', covariates='c', fixed_effects='city')
        assert spec.covariates == ('c',)
        assert spec.fixed_effects == ('city',)

    def test_errors_are_value_errors(self):
        assert issubclass(ModelSpecError, PowerSimError)
        assert issubclass(ModelSpecError, ValueError)


class TestTransformations:
    """Derived specifications used by the designs."""

    def test_with_exposure_replaces_coefficient_of_interest(self):
        spec = ModelSpec.from_formula("y ~ co + t | city")
        reduced = spec.with_exposure('treated')

        assert reduced.exposure == 'treated'
        assert reduced.covariates == ('t',)
        assert reduced.fixed_effects == ('city',)
        assert spec.exposure == 'co'

    def test_with_exposure_extra_covariates_first(self):
        spec = ModelSpec.from_formula("y ~ co + t | city")
        rdd = spec.with_exposure('treated', extra_covariates=('running', 'treated_x_running'))
        assert rdd.covariates == ('running', 'treated_x_running', 't')

    def test_with_outcome(self):
        spec = ModelSpec.from_formula("y ~ x | city").with_outcome('y_synth')
        assert spec.formula == "y_synth ~ x | city"

    def test_dict_round_trip(self):
        spec = ModelSpec.from_formula("y ~ c | city | x ~ z")
        assert ModelSpec.from_dict(spec.to_dict()) == spec

    def test_from_dict_with_formula(self):
        spec = ModelSpec.from_dict({'formula': "y ~ x | city", 'vcov': 'iid'})
        assert spec.vcov == 'iid'
        assert spec.exposure == 'x'

    def test_from_dict_missing_keys(self):
        with pytest.raises(ModelSpecError, match="missing keys"):
            ModelSpec.from_dict({'outcome': 'y'})

    def test_first_stage_requires_instrument(self):
        with pytest.raises(ModelSpecError):
            ModelSpec.from_formula("y ~ x").first_stage()
