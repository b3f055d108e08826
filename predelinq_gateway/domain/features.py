"""
Behavioral feature extraction - turns one customer's transaction batch into a
FeatureVector of stress signals.

All windows are anchored on the date of the last transaction in the batch, not
on the wall clock, so re-processing the same statement always yields the same
vector. Category matching is loose substring containment against short keyword
lists; one category may feed more than one signal family.
"""

import math
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from predelinq_gateway.domain.models import Channel, FeatureVector, Segment, Transaction
from predelinq_gateway.utils.date_utils import days_before, group_by_month, month_key
from predelinq_gateway.utils.numeric import mean, population_std, safe_ratio

SALARY_CATEGORIES = ("salary", "income", "payroll")
UTILITY_CATEGORIES = ("utility", "electricity", "water", "gas", "mobile", "internet", "telecom")
LENDING_CATEGORIES = ("lending_app", "loan_app", "instant_loan", "lending", "loan")
ATM_CATEGORIES = ("atm_withdrawal", "atm", "cash_withdrawal")
DISCRETIONARY_CATEGORIES = ("entertainment", "shopping", "dining", "restaurant", "travel", "leisure")
LOAN_REPAYMENT_CATEGORIES = ("loan_repayment", "emi", "repayment", "mortgage")
GAMBLING_CATEGORIES = ("gambling", "lottery", "casino", "betting")

# Any single credit above this is treated as salary-like
SALARY_AMOUNT_THRESHOLD = 20_000

# Flag thresholds
SALARY_DELAY_FLAG_DAYS = 3
SALARY_DROP_FLAG_PERCENT = 10
SAVINGS_DRAWDOWN_FLAG_PERCENT = 8
UTILITY_DELAY_FLAG_DAYS = 4
LENDING_SPIKE_FLAG_RATIO = 1.5
LENDING_COUNT_FLAG = 3
ATM_SPIKE_FLAG_RATIO = 1.7
DISCRETIONARY_DROP_FLAG_PERCENT = 20
REPAYMENT_LATE_DAYS = 7
VOLATILITY_FLAG_INDEX = 0.8
DEBT_BURDEN_FLAG_RATIO = 0.35
GAMBLING_FLAG_RATIO = 2

# Lending ratio when the previous window had no lending activity at all
LENDING_RATIO_FROM_ZERO = 3.0


def _matches(category: str, keywords: Sequence[str]) -> bool:
    return any(keyword in category for keyword in keywords)


def is_salary_like(txn: Transaction) -> bool:
    """Credit that looks like an income inflow by category, merchant or size"""
    if not txn.is_credit:
        return False
    return (
        _matches(txn.category, SALARY_CATEGORIES)
        or _matches(txn.merchant.lower(), SALARY_CATEGORIES)
        or txn.amount > SALARY_AMOUNT_THRESHOLD
    )


def _total(txns: Iterable[Transaction]) -> float:
    return math.fsum(t.amount for t in txns)


def _in_window(txns: Sequence[Transaction], start: date, end: Optional[date] = None) -> List[Transaction]:
    """Transactions with start <= date (< end when given)"""
    return [t for t in txns if t.date >= start and (end is None or t.date < end)]


def _earliest_day(txns: Sequence[Transaction]) -> int:
    return min(t.date.day for t in txns)


def _monthly_day_delay(txns: Sequence[Transaction]) -> Tuple[float, Dict[str, List[Transaction]]]:
    """
    Days by which the latest month's first occurrence trails the historical
    average first day-of-month. Needs at least two months; otherwise 0.
    """
    by_month = group_by_month(txns, key=lambda t: t.date)
    months = sorted(by_month)
    if len(months) < 2:
        return 0.0, by_month

    baseline = mean([_earliest_day(by_month[m]) for m in months[:-1]])
    current = _earliest_day(by_month[months[-1]])
    return max(0.0, current - baseline), by_month


def _salary_drop_percent(by_month: Dict[str, List[Transaction]]) -> float:
    months = sorted(by_month)
    if len(months) < 2:
        return 0.0
    previous_avg = mean([_total(by_month[m]) for m in months[:-1]])
    if previous_avg <= 0:
        return 0.0
    current = _total(by_month[months[-1]])
    return max(0.0, (previous_avg - current) / previous_avg * 100)


def _mean_daily_balance(txns: Sequence[Transaction]) -> float:
    """Mean over days of each day's average balance"""
    by_day: Dict[date, List[float]] = {}
    for txn in txns:
        by_day.setdefault(txn.date, []).append(txn.balance)
    return mean([mean(balances) for balances in by_day.values()])


def _savings_drawdown_percent(sorted_txns: Sequence[Transaction], last_date: date) -> float:
    week_ago = days_before(last_date, 7)
    two_weeks_ago = days_before(last_date, 14)
    last_week = _in_window(sorted_txns, week_ago)
    prev_week = _in_window(sorted_txns, two_weeks_ago, week_ago)
    if not last_week or not prev_week:
        return 0.0

    prev_avg = _mean_daily_balance(prev_week)
    if prev_avg <= 0:
        return 0.0
    last_avg = _mean_daily_balance(last_week)
    return max(0.0, (prev_avg - last_avg) / prev_avg * 100)


def _failed_auto_debit_count(sorted_txns: Sequence[Transaction], last_date: date) -> int:
    """
    1 when the latest statement month shows no repayment although earlier
    months did, or when its first repayment landed more than a week later than
    the usual day-of-month; otherwise 0.
    """
    repayments = [t for t in sorted_txns if _matches(t.category, LOAN_REPAYMENT_CATEGORIES)]
    by_month = group_by_month(repayments, key=lambda t: t.date)
    latest_month = month_key(last_date)
    prior_months = sorted(m for m in by_month if m < latest_month)
    if not prior_months:
        return 0

    if latest_month not in by_month:
        return 1

    expected_day = mean([_earliest_day(by_month[m]) for m in prior_months])
    actual_day = _earliest_day(by_month[latest_month])
    return 1 if actual_day - expected_day > REPAYMENT_LATE_DAYS else 0


def _volatility_index(last30: Sequence[Transaction]) -> float:
    daily_debits: Dict[date, float] = {}
    for txn in last30:
        if txn.is_debit:
            daily_debits[txn.date] = daily_debits.get(txn.date, 0.0) + txn.amount
    values = list(daily_debits.values())
    return safe_ratio(population_std(values), mean(values))


def extract_features(transactions: Sequence[Transaction]) -> FeatureVector:
    """
    Compute the behavioral feature vector for one customer's batch.

    Pure and deterministic: the input order does not matter (transactions are
    re-sorted by date, stable), and every zero-denominator case yields 0.
    """
    if not transactions:
        return FeatureVector()

    flags: List[str] = []
    sorted_txns = sorted(transactions, key=lambda t: t.date)
    last_date = sorted_txns[-1].date

    date14 = days_before(last_date, 14)
    date28 = days_before(last_date, 28)
    date30 = days_before(last_date, 30)
    date60 = days_before(last_date, 60)

    last14 = _in_window(sorted_txns, date14)
    prev14 = _in_window(sorted_txns, date28, date14)
    last30 = _in_window(sorted_txns, date30)
    prev30 = _in_window(sorted_txns, date60, date30)
    last60 = _in_window(sorted_txns, date60)

    def category_filter(window: Sequence[Transaction], keywords: Sequence[str],
                        extra: Optional[Callable[[Transaction], bool]] = None) -> List[Transaction]:
        return [t for t in window if _matches(t.category, keywords) or (extra is not None and extra(t))]

    # 1-2. Salary delay and drop
    salary_txns = [t for t in sorted_txns if is_salary_like(t)]
    salary_delay_days, salary_by_month = _monthly_day_delay(salary_txns)
    if salary_delay_days > SALARY_DELAY_FLAG_DAYS:
        flags.append("Salary Delay Signal")

    salary_drop_percent = _salary_drop_percent(salary_by_month)
    if salary_drop_percent > SALARY_DROP_FLAG_PERCENT:
        flags.append("Salary Drop Signal")

    # 3. Savings drawdown
    savings_drawdown_percent = _savings_drawdown_percent(sorted_txns, last_date)
    if savings_drawdown_percent > SAVINGS_DRAWDOWN_FLAG_PERCENT:
        flags.append("Savings Drawdown Signal")

    # 4. Utility delay
    utility_delay_days, _ = _monthly_day_delay(category_filter(sorted_txns, UTILITY_CATEGORIES))
    if utility_delay_days > UTILITY_DELAY_FLAG_DAYS:
        flags.append("Late Utility Payments")

    # 5. Lending app spike
    lending_last14 = len(category_filter(last14, LENDING_CATEGORIES))
    lending_prev14 = len(category_filter(prev14, LENDING_CATEGORIES))
    if lending_prev14 > 0:
        lending_ratio = lending_last14 / lending_prev14
    else:
        lending_ratio = LENDING_RATIO_FROM_ZERO if lending_last14 > 0 else 0.0
    if lending_ratio > LENDING_SPIKE_FLAG_RATIO or lending_last14 >= LENDING_COUNT_FLAG:
        flags.append("Lending App Spike")

    # 6. ATM withdrawal spike, baseline is the 30-day count halved
    def is_atm_channel(t: Transaction) -> bool:
        return t.channel == Channel.ATM

    atm_last14 = len(category_filter(last14, ATM_CATEGORIES, is_atm_channel))
    atm_baseline = len(category_filter(last30, ATM_CATEGORIES, is_atm_channel)) / 2
    atm_spike_ratio = safe_ratio(atm_last14, atm_baseline)
    if atm_spike_ratio > ATM_SPIKE_FLAG_RATIO:
        flags.append("Cash Hoarding Behavior")

    # 7. Discretionary spend drop
    disc_last14 = _total(t for t in category_filter(last14, DISCRETIONARY_CATEGORIES) if t.is_debit)
    disc_prev14 = _total(t for t in category_filter(prev14, DISCRETIONARY_CATEGORIES) if t.is_debit)
    discretionary_drop_percent = (
        max(0.0, (disc_prev14 - disc_last14) / disc_prev14 * 100) if disc_prev14 > 0 else 0.0
    )
    if discretionary_drop_percent > DISCRETIONARY_DROP_FLAG_PERCENT:
        flags.append("Discretionary Spend Drop")

    # 8. Failed auto-debit
    failed_auto_debit_count = _failed_auto_debit_count(sorted_txns, last_date)
    if failed_auto_debit_count >= 1:
        flags.append("Repayment Missed Risk")

    # 9. Spending volatility
    volatility_index = _volatility_index(last30)
    if volatility_index > VOLATILITY_FLAG_INDEX:
        flags.append("High Volatility Spend")

    # 10. Debt burden
    repayments30 = _total(category_filter(last30, LOAN_REPAYMENT_CATEGORIES))
    salary60 = _total(t for t in last60 if is_salary_like(t))
    debt_burden_ratio = safe_ratio(repayments30, salary60)
    if debt_burden_ratio > DEBT_BURDEN_FLAG_RATIO:
        flags.append("High Debt Burden")

    # 11. Net cashflow
    net_cashflow = _total(t for t in last30 if t.is_credit) - _total(t for t in last30 if t.is_debit)
    if net_cashflow < 0:
        flags.append("Negative Cashflow")

    # 12. Gambling
    gambling_ratio = safe_ratio(
        _total(category_filter(last30, GAMBLING_CATEGORIES)),
        _total(category_filter(prev30, GAMBLING_CATEGORIES)),
    )
    if gambling_ratio > GAMBLING_FLAG_RATIO:
        flags.append("High Gambling Spend")

    return FeatureVector(
        salary_delay_days=salary_delay_days,
        salary_drop_percent=salary_drop_percent,
        savings_drawdown_percent=savings_drawdown_percent,
        utility_delay_days=utility_delay_days,
        lending_app_txn_count=lending_last14,
        lending_app_spike_ratio=lending_ratio,
        atm_withdrawal_spike_ratio=atm_spike_ratio,
        discretionary_spend_drop_percent=discretionary_drop_percent,
        failed_auto_debit_count=failed_auto_debit_count,
        spending_volatility_index=volatility_index,
        debt_burden_ratio=debt_burden_ratio,
        net_cashflow=net_cashflow,
        gambling_spend_ratio=gambling_ratio,
        flags=tuple(flags),
    )


def detect_segment(transactions: Sequence[Transaction]) -> Segment:
    """Rough customer segment from salary presence and average credit size"""
    if any(t.is_credit and _matches(t.category, SALARY_CATEGORIES) for t in transactions):
        return Segment.SALARIED

    avg_credit = _total(t for t in transactions if t.is_credit) / max(len(transactions), 1)
    if avg_credit < 5000:
        return Segment.STUDENT
    if avg_credit > 15000:
        return Segment.SELF_EMPLOYED
    return Segment.RETIRED


def compute_data_confidence(transactions: Sequence[Transaction]) -> float:
    """Trust indicator shown next to the score; never used in scoring"""
    count = len(transactions)
    if count >= 90:
        return 0.95
    if count >= 60:
        return 0.85
    if count >= 30:
        return 0.75
    if count >= 15:
        return 0.60
    return 0.40
