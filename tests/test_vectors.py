import numpy as np
import pytest

from mcprocess.exceptions import BoundsError, ConfigurationError, DimensionMismatchError
from mcprocess.vectors import (
    HistogramResult,
    SampleVector,
    add,
    build_histogram,
    divide,
    kahan_mean,
    kahan_std,
    kahan_sum,
    min_max,
    multiply,
    subtract,
)


class TestCompensatedSums:
    """Test compensated summation and the moments built on it"""

    def test_cancellation_is_recovered(self):
        """Test that the compensation keeps a term a naive loop loses"""
        values = [1e16, 1.0, -1e16]
        naive = 0.0
        for v in values:
            naive += v
        assert naive == 0.0
        assert kahan_sum(values) == 1.0

    def test_mean_of_cancelling_terms(self):
        """Test the compensated mean of a cancelling sequence"""
        assert kahan_mean([1e16, 1.0, -1e16]) == pytest.approx(1.0 / 3, abs=np.finfo(float).eps)

    def test_many_small_terms(self):
        """Test a long sum of 0.1 stays exact to the last bits"""
        assert kahan_sum(np.full(100_000, 0.1)) == pytest.approx(10_000.0, rel=1e-15)

    def test_empty_sum_is_zero(self):
        """Test the empty sum"""
        assert kahan_sum([]) == 0.0

    def test_mean_empty_raises(self):
        """Test averaging an empty vector fails"""
        with pytest.raises(ConfigurationError):
            kahan_mean([])

    def test_std_matches_numpy(self, sample_data):
        """Test the compensated std agrees with numpy"""
        assert kahan_std(sample_data) == pytest.approx(np.std(sample_data, ddof=1), rel=1e-12)
        assert kahan_std(sample_data, ddof=0) == pytest.approx(np.std(sample_data), rel=1e-12)

    def test_std_single_value(self):
        """Test std of a single value is zero"""
        assert kahan_std([3.0]) == 0.0

    def test_rejects_matrices(self):
        """Test two-dimensional input is refused"""
        with pytest.raises(ConfigurationError):
            kahan_sum(np.ones((2, 2)))

    def test_min_max(self):
        """Test min/max and the empty case"""
        assert min_max([3.0, -1.0, 2.0]) == (-1.0, 3.0)
        with pytest.raises(ConfigurationError):
            min_max([])


class TestHistogram:
    """Test histogram binning with outlier buckets"""

    def test_basic_binning(self):
        """Test values at the edges land in the documented buckets"""
        hist = build_histogram([0.0, 0.5, 1.0, 2.0], 0.0, 1.0, 2)
        assert hist.bins.tolist() == [0, 1, 1, 2]
        assert hist.n_bins == 2
        assert hist.bin_width == 0.5

    def test_below_and_above(self):
        """Test outliers on both sides"""
        hist = build_histogram([-1.0, 0.25, 0.75, 0.999999], 0.0, 1.0, 4)
        assert hist.bins.tolist() == [1, 0, 1, 0, 2, 0]
        assert hist.below == 1
        assert hist.above == 0

    def test_counts_sum_to_length(self, sample_data):
        """Test every value is counted exactly once"""
        hist = build_histogram(sample_data, 2.0, 8.0, 12)
        assert hist.total == len(sample_data)
        assert hist.bins.size == 14

    @pytest.mark.parametrize("n_bins", [1, 2, 7, 50])
    def test_every_value_counted_once(self, n_bins):
        """Test outliers, infinities and the bounds for several bin counts"""
        rng = np.random.default_rng(n_bins)
        just_below_max = np.nextafter(1.0, 0.0)
        values = np.concatenate(
            [
                rng.uniform(0.0, 1.0, 200),
                [-5.0, -0.1, -np.inf, 3.0, np.inf, 0.0, 1.0, 1.0, just_below_max],
            ]
        )
        hist = build_histogram(values, 0.0, 1.0, n_bins)
        edges = hist.bin_edges()

        assert hist.bins.size == n_bins + 2
        assert hist.total == values.size
        assert hist.below == 3
        assert hist.above == 4
        for k in range(1, n_bins + 1):
            expected = np.count_nonzero((values >= edges[k - 1]) & (values < edges[k]))
            assert hist.count(k) == expected
        assert build_histogram([0.0], 0.0, 1.0, n_bins).count(1) == 1
        assert build_histogram([just_below_max], 0.0, 1.0, n_bins).count(n_bins) == 1

    def test_maximum_goes_to_upper_outlier_bin(self):
        """Test a value equal to max_bin is counted as an outlier"""
        values = [0.0, 0.3, 1.0]
        hist = build_histogram(values, 0.0, 1.0, 3)
        assert hist.above == 1

    def test_bins_are_read_only(self):
        """Test the counts cannot be modified"""
        hist = build_histogram([0.5], 0.0, 1.0, 2)
        with pytest.raises(ValueError):
            hist.bins[0] = 5

    def test_bin_edges(self):
        """Test the interior edges"""
        hist = build_histogram([0.5], 0.0, 1.0, 4)
        np.testing.assert_allclose(hist.bin_edges(), [0.0, 0.25, 0.5, 0.75, 1.0])

    def test_count_out_of_range(self):
        """Test bin lookup bounds"""
        hist = build_histogram([0.5], 0.0, 1.0, 2)
        assert hist.count(2) == 1
        with pytest.raises(BoundsError):
            hist.count(4)
        with pytest.raises(IndexError):
            hist.count(-1)

    @pytest.mark.parametrize(
        "min_bin,max_bin,n_bins",
        [
            (1.0, 1.0, 3),
            (2.0, 1.0, 3),
            (0.0, 1.0, 0),
        ],
    )
    def test_invalid_configuration(self, min_bin, max_bin, n_bins):
        """Test degenerate bounds and bin counts are refused"""
        with pytest.raises(ConfigurationError):
            build_histogram([0.5], min_bin, max_bin, n_bins)

    def test_nan_refused(self):
        """Test NaN cannot be binned"""
        with pytest.raises(ConfigurationError):
            build_histogram([0.1, np.nan], 0.0, 1.0, 2)

    def test_result_validation(self):
        """Test the container validates its own fields"""
        with pytest.raises(ConfigurationError):
            HistogramResult(bins=np.array([1, 2]), min_bin=0.0, max_bin=1.0)
        with pytest.raises(ConfigurationError):
            HistogramResult(bins=np.array([0, 1, 0]), min_bin=1.0, max_bin=1.0)


class TestElementwise:
    """Test elementwise algebra on equal-length vectors"""

    def test_operations(self):
        """Test the four operations"""
        a, b = [1.0, 2.0, 3.0], [4.0, 5.0, 6.0]
        np.testing.assert_allclose(add(a, b), [5.0, 7.0, 9.0])
        np.testing.assert_allclose(subtract(a, b), [-3.0, -3.0, -3.0])
        np.testing.assert_allclose(multiply(a, b), [4.0, 10.0, 18.0])
        np.testing.assert_allclose(divide(a, b), [0.25, 0.4, 0.5])

    @pytest.mark.parametrize("op", [add, subtract, multiply, divide])
    def test_length_mismatch(self, op):
        """Test unequal lengths raise"""
        with pytest.raises(DimensionMismatchError):
            op([1.0, 2.0], [1.0, 2.0, 3.0])

    def test_divide_by_zero_follows_numpy(self):
        """Test division by zero gives inf without warnings"""
        out = divide([1.0], [0.0])
        assert np.isinf(out[0])


class TestSampleVector:
    """Test the immutable sample vector"""

    def test_arithmetic_with_vectors_and_scalars(self):
        """Test vector and scalar operands"""
        x = SampleVector([1.0, 2.0, 3.0])
        y = SampleVector([2.0, 2.0, 2.0])
        np.testing.assert_allclose((x + y).values, [3.0, 4.0, 5.0])
        np.testing.assert_allclose((x * 2).values, [2.0, 4.0, 6.0])
        np.testing.assert_allclose((10 - x).values, [9.0, 8.0, 7.0])
        np.testing.assert_allclose((6 / x).values, [6.0, 3.0, 2.0])
        np.testing.assert_allclose((x / y).values, [0.5, 1.0, 1.5])
        np.testing.assert_allclose((-x).values, [-1.0, -2.0, -3.0])

    def test_mismatch(self):
        """Test vectors of unequal length cannot be combined"""
        with pytest.raises(DimensionMismatchError):
            SampleVector([1.0, 2.0]) + SampleVector([1.0, 2.0, 3.0])

    def test_statistics(self):
        """Test mean, std and apply"""
        x = SampleVector([1.0, 2.0, 3.0])
        assert x.mean() == 2.0
        assert x.std() == 1.0
        assert x.apply(np.square).mean() == pytest.approx(14.0 / 3)
        assert x.min_max() == (1.0, 3.0)

    def test_histogram(self):
        """Test binning through the wrapper"""
        x = SampleVector([0.1, 0.6, 0.7])
        assert x.histogram(0.0, 1.0, 2).bins.tolist() == [0, 1, 2, 0]

    def test_indexing_and_bounds(self):
        """Test item access"""
        x = SampleVector([1.0, 2.0, 3.0])
        assert len(x) == 3
        assert x[0] == 1.0
        assert x[-1] == 3.0
        assert list(x) == [1.0, 2.0, 3.0]
        with pytest.raises(BoundsError):
            x[3]

    def test_immutable(self):
        """Test the wrapped values are read-only and detached from the input"""
        source = np.array([1.0, 2.0])
        x = SampleVector(source)
        source[0] = 99.0
        assert x[0] == 1.0
        with pytest.raises(ValueError):
            x.values[0] = 5.0

    def test_numpy_interop(self):
        """Test conversion to a numpy array"""
        x = SampleVector([1.0, 2.0])
        assert np.asarray(x).tolist() == [1.0, 2.0]
        assert "n=2" in repr(x)
