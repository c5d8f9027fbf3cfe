import math
import numpy as np
from scipy.integrate import solve_ivp

from pkpop.types import PKParameterSet
from pkpop.dosing import single_dose
from pkpop.models.registry import get_model
from pkpop.solvers import rk4_integrate, simulate_regimen
from pkpop.metrics import auc_trapz, cmax


ONE_COMP = PKParameterSet(CL=5.0, V=50.0)


def test_iv_bolus_exponential_decay():
    """
    For a 1-compartment model with linear elimination, an IV bolus follows:
      C(t) = C0 * exp(-k t),  where k = CL / V and C0 = dose / V.
    We simulate 100 mg IV and compare to the analytical solution up to 48 h.
    """
    model = get_model("one_compartment")
    reg = single_dose(model, amount_mg=100.0, sim_time_h=48.0)

    prof = simulate_regimen(model, ONE_COMP, reg, step_h=0.1)

    C_expected = (100.0 / 50.0) * np.exp(-(5.0 / 50.0) * prof.times)
    assert np.isclose(prof.times[0], 0.0)
    assert np.isclose(prof.times[-1], 48.0)
    assert np.allclose(prof.concentrations, C_expected, rtol=1e-3, atol=0.0)


def test_half_life_halves_concentration():
    """At t = ln(2) V / CL = 6.93 h the concentration is half of C0."""
    model = get_model("one_compartment")
    reg = single_dose(model, amount_mg=100.0, sim_time_h=48.0)
    prof = simulate_regimen(model, ONE_COMP, reg, step_h=0.1)

    t_half = math.log(2.0) * 50.0 / 5.0
    c_half = np.interp(t_half, prof.times, prof.concentrations)
    assert np.isclose(c_half, prof.concentrations[0] / 2.0, rtol=1e-3)


def test_rk4_matches_scipy_three_compartment():
    """Fixed-step RK4 should agree with scipy's adaptive solver on a stiff-ish 3-compartment system."""
    model = get_model("three_compartment")
    params = PKParameterSet(CL=10.0, V1=20.0, V2=40.0, V3=200.0, Q2=15.0, Q3=3.0)
    rhs = model.derivative(params)
    y0 = np.array([500.0, 0.0, 0.0])

    t, y = rk4_integrate(rhs, y0, 0.0, 24.0, 0.05)
    ref = solve_ivp(rhs, t_span=(0.0, 24.0), y0=y0, method="RK45", t_eval=t[t <= 24.0],
                    rtol=1e-9, atol=1e-12)

    n = ref.t.size
    assert np.allclose(y[:n], ref.y.T, rtol=1e-5, atol=1e-8)


def test_rk4_step_count_and_overshoot():
    """ceil((t1-t0)/h) steps, initial point included, last step may pass t1."""
    t, y = rk4_integrate(lambda t, y: -y, [1.0], 0.0, 1.0, 0.3)
    assert t.size == 5 and y.shape == (5, 1)
    assert np.isclose(t[-1], 1.2)

    t, _ = rk4_integrate(lambda t, y: -y, [1.0], 0.0, 12.0, 0.1)
    assert t.size == 121
    assert np.isclose(t[-1], 12.0)


def test_rk4_is_stateless():
    rhs = get_model("two_compartment").derivative(PKParameterSet(CL=3.0, V1=10.0, V2=30.0, Q=4.0))
    y0 = np.array([100.0, 0.0])
    t1, y1 = rk4_integrate(rhs, y0, 0.0, 10.0, 0.1)
    t2, y2 = rk4_integrate(rhs, y0, 0.0, 10.0, 0.1)
    assert np.array_equal(t1, t2) and np.array_equal(y1, y2)
    assert np.array_equal(y0, [100.0, 0.0])


def test_dose_linearity_all_models():
    """Linear kinetics: doubling the dose doubles AUC and Cmax for every model."""
    cases = {
        "one_compartment": PKParameterSet(CL=5.0, V=50.0),
        "two_compartment": PKParameterSet(CL=5.0, V1=20.0, V2=60.0, Q=8.0),
        "three_compartment": PKParameterSet(CL=5.0, V1=20.0, V2=40.0, V3=150.0, Q2=10.0, Q3=2.0),
        "two_compartment_oral": PKParameterSet(CL=24.0, V1=90.0, V2=100.0, Q=20.0, Ka=1.5, F=0.4),
    }
    for name, params in cases.items():
        model = get_model(name)
        p1 = simulate_regimen(model, params, single_dose(model, 100.0, 48.0, params.F), 0.1)
        p2 = simulate_regimen(model, params, single_dose(model, 200.0, 48.0, params.F), 0.1)
        t = p1.times
        assert np.isclose(auc_trapz(t, p2.concentrations), 2.0 * auc_trapz(t, p1.concentrations), rtol=1e-9), name
        assert np.isclose(cmax(p2.concentrations), 2.0 * cmax(p1.concentrations), rtol=1e-9), name
