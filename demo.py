from __future__ import annotations

import numpy as np

from mcprocess import (
    BinomialModel,
    CLTMeanConfidenceInterval,
    ChebyshevMeanConfidenceInterval,
    DigitalOption,
    DiscreteProcessSimulator,
    ExponentialRandomVariable,
    HaltonSource,
    MonteCarloFramework,
    OptionPriceEvaluations,
    PiEstimation,
    PiFromHypersphere,
    PriceExperiments,
    discrepancy,
    star_discrepancy,
)


def progress(completed: int, total: int):
    step = max(1, total // 10)
    if completed % step == 0 or completed == total:
        print(f"Progress: {completed}/{total} ({100 * completed / total:.0f}%)")


def print_histogram(hist, width: int = 50):
    """Text rendering of a histogram with its two outlier buckets."""
    peak = max(1, int(hist.bins.max()))
    labels = ["below"] + [f"{lo:.4f}" for lo in hist.bin_edges()[:-1]] + ["above"]
    for label, count in zip(labels, hist.bins.tolist()):
        print(f"  {label:>8} | {'#' * (width * count // peak)} {count}")


def main():
    model = BinomialModel(up=1.5, down=0.5)
    option = DigitalOption(maturity=7, strike=100.0)

    print("Simulating the reference process…")
    process = DiscreteProcessSimulator(model, 100.0, n_simulations=100_000, last_time=7)
    print(f"  Discounted average at t=7: {process.get_discounted_average_at_time(7):.4f}")
    print(f"  Digital price: {option.get_price(process):.5f}   (exact {option.exact_price(model, 100.0):.5f})")

    print("\nPricing under random seeds…")
    experiments = PriceExperiments(model, 100.0, 7, 5_000, option)
    experiments.set_seed(43)
    low, high = experiments.min_and_max(100)
    print(f"  Min/Max over 100 seeds: {low:.5f} / {high:.5f}")
    print_histogram(experiments.histogram(n_bins=10, repetitions=100))

    fw = MonteCarloFramework()
    evaluations = [
        PiEstimation(n_computations=1_000, n_drawings=10_000),
        PiFromHypersphere(n_computations=200, n_drawings=10_000, dimension=4),
        PiFromHypersphere(n_computations=200, n_drawings=10_000, dimension=4, point_source=HaltonSource(4)),
        OptionPriceEvaluations(experiments, n_computations=200),
    ]
    for ev in evaluations:
        ev.set_seed(43)
        ev.progress_callback = progress
    fw.register_evaluation(evaluations[0])
    fw.register_evaluation(evaluations[1])
    fw.register_evaluation(evaluations[2], name="Pi from 4-sphere (Halton)")
    fw.register_evaluation(evaluations[3])

    names = list(fw.evaluations)
    for name in names:
        print(f"\nRunning {name}…")
        fw.run_evaluation(name, extra_context={"eps": 0.01})

    print("\n" + "*" * 50)
    print("AVERAGE ABSOLUTE ERRORS:")
    for name, value in fw.compare_results(names, metric="abs_error").items():
        print(f"  {name}: {value:.5f}")
    print("*" * 50 + "\n")

    print(fw.results["Option Prices"].result_to_string())

    print("\nConfidence intervals for the mean of 1000 Exp(0.2) draws:")
    rv = ExponentialRandomVariable(0.2)
    rv.set_seed(43)
    for interval in (CLTMeanConfidenceInterval(rv, 1_000), ChebyshevMeanConfidenceInterval(rv, 1_000)):
        ci = interval.interval(0.9)
        coverage = interval.coverage_frequency(2_000, 0.9)
        print(f"  {type(interval).__name__}: [{ci.lower:.4f}, {ci.upper:.4f}]  coverage {coverage:.3f}")

    print("\nDiscrepancy of 1024 points:")
    halton = HaltonSource(1).next_points(1024)[:, 0]
    uniform = np.random.default_rng(43).random(1024)
    print(f"  Halton:  D={discrepancy(halton):.5f}  D*={star_discrepancy(halton):.5f}")
    print(f"  Uniform: D={discrepancy(uniform):.5f}  D*={star_discrepancy(uniform):.5f}")


if __name__ == "__main__":
    main()
