import pandas as pd
import pytest
import cross_validation
from cross_validation import MonthlyBacktester, select_best_method
from forecasting import linear_trend_forecast, moving_average_forecast
from models import DataPoint


def make_series(values, start='2022-01-01'):
    dates = pd.date_range(start=start, periods=len(values), freq='MS')
    return [DataPoint(d.strftime('%Y-%m-%d'), float(v)) for d, v in zip(dates, values)]


def test_splits_are_expanding_and_contiguous():
    splits = MonthlyBacktester(n_splits=3, horizon=3, min_train_size=6).splits(18)
    assert len(splits) == 3
    assert [len(train) for train, _ in splits] == [9, 12, 15]
    for train, test in splits:
        assert list(test) == list(range(train[-1] + 1, train[-1] + 4))


def test_splits_reduced_for_short_series():
    backtester = MonthlyBacktester(n_splits=3, horizon=3, min_train_size=6)
    assert len(backtester.splits(12)) == 2
    single = backtester.splits(9)
    assert len(single) == 1
    assert list(single[0][1]) == [6, 7, 8]
    assert backtester.splits(8) == []


def test_backtest_summary_and_best_method():
    # Steady linear growth: the linear trend should beat a lagging moving average
    data = make_series([100 + 20 * i for i in range(18)])
    methods = {'linear': linear_trend_forecast, 'moving_average': moving_average_forecast}
    results = MonthlyBacktester(n_splits=3, horizon=3, min_train_size=6).backtest(data, methods)

    assert len(results['splits_info']) == 3
    assert results['splits_info'][0]['test_start_date'] == '2022-10-01'
    assert results['summary']['linear']['valid_folds'] == 3
    assert results['summary']['linear']['mean_mae'] < results['summary']['moving_average']['mean_mae']
    assert results['best_method']['method'] == 'linear'


def test_backtest_all_registered_methods():
    data = make_series([300, 320, 280, 350, 330, 310, 360, 340, 390, 370, 400, 380])
    results = MonthlyBacktester().backtest(data)
    assert set(results['summary']) == {'linear', 'exponential', 'moving_average', 'ensemble'}
    assert results['best_method']['method'] in results['summary']


def test_backtest_too_short():
    results = MonthlyBacktester().backtest(make_series([1, 2, 3]))
    assert results['best_method']['method'] is None
    assert results['splits_info'] == []


def test_select_best_method_default_for_short_series():
    assert select_best_method(make_series([10, 20])) == 'ensemble'


def test_select_best_method_lowest_mae(monkeypatch):
    # Chooses method with lowest MAE from the backtest summary
    def fake_summary(self, method_results):
        return {'linear': {'mean_mae': 10}, 'moving_average': {'mean_mae': 5}}
    monkeypatch.setattr(cross_validation.MonthlyBacktester, '_calculate_summary', fake_summary)
    data = make_series(list(range(12)))
    assert select_best_method(data) == 'moving_average'


@pytest.mark.parametrize('horizon', [1, 2, 4])
def test_backtest_horizon_lengths(horizon):
    data = make_series([200 + (i % 4) * 15 for i in range(16)])
    results = MonthlyBacktester(n_splits=2, horizon=horizon, min_train_size=6).backtest(data)
    assert all(info['test_size'] == horizon for info in results['splits_info'])
