"""
Synthetic statement generator for demos and tests.

Produces a single-customer CSV whose behavior drifts with the requested risk
level: later and smaller salaries, slipping loan repayments and more
lending-app / ATM / gambling activity as the level rises. Output is fully
determined by the arguments when a seed is given.
"""

import csv
import io
import random
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional

from predelinq_gateway.domain.models import RiskBand

NAMES = [
    "Arjun Sharma", "Priya Patel", "Vikram Mehta", "Sneha Rao", "Rahul Gupta",
    "Ananya Singh", "Rohit Kumar", "Kavita Nair", "Suresh Iyer", "Deepa Joshi",
    "Arun Verma", "Meena Reddy", "Kiran Bose", "Pooja Agarwal", "Ravi Pillai",
]

CREDIT_CATEGORIES = ["salary", "transfer", "refund", "interest", "cashback"]
DEBIT_CATEGORIES = [
    "grocery", "utility", "dining", "shopping", "atm_withdrawal",
    "loan_repayment", "entertainment", "transfer", "insurance",
]
HIGH_RISK_DEBIT_CATEGORIES = ["lending_app", "atm_withdrawal", "gambling", "loan_app"]
CHANNELS = ["UPI", "Card", "NetBanking", "ATM", "AutoDebit", "Cash"]

CSV_HEADER = [
    "transaction_id", "customer_id", "customer_name", "date", "amount",
    "type", "category", "balance", "merchant", "channel",
]

OPENING_BALANCE = {RiskBand.CRITICAL: 8000, RiskBand.HIGH: 15000, RiskBand.MEDIUM: 30000, RiskBand.LOW: 60000}
AVERAGE_SALARY = {RiskBand.CRITICAL: 25000, RiskBand.HIGH: 35000, RiskBand.MEDIUM: 45000, RiskBand.LOW: 60000}
MONTHLY_REPAYMENT = 8000
MIN_SALARY = 15000


@dataclass
class _Row:
    txn_id: str
    day: date
    amount: int
    type: str
    category: str
    balance: int
    merchant: str
    channel: str


def _salary_day(level: RiskBand, month: int) -> int:
    if level == RiskBand.CRITICAL:
        return 12 + month * 4
    if level == RiskBand.HIGH:
        return 5 + month * 2
    return 5


def _salary_amount(level: RiskBand, month: int) -> float:
    base = AVERAGE_SALARY[level]
    if level == RiskBand.CRITICAL:
        return base * (1 - 0.15 * month)
    if level == RiskBand.HIGH:
        return base * (1 - 0.05 * month)
    return base


def customer_name_for(customer_id: str) -> str:
    return NAMES[ord(customer_id[-1]) % len(NAMES)] if customer_id else NAMES[0]


def generate_synthetic_csv(
    customer_id: str,
    risk_level: RiskBand,
    days: int = 90,
    num_transactions: int = 120,
    include_salary: bool = True,
    end_date: Optional[date] = None,
    seed: Optional[int] = None,
) -> str:
    """
    Build a synthetic statement CSV for one customer.

    Args:
        customer_id: Customer identifier written on every row
        risk_level: Band whose behavior the statement should imitate
        days: Length of the statement period
        num_transactions: Target row count (salary/repayment rows included)
        include_salary: Whether monthly salary credits are generated
        end_date: Last calendar day of the statement (default: today)
        seed: Random seed for reproducible output

    Returns:
        CSV text with header row
    """
    rng = random.Random(seed)
    end = end_date or date.today()
    start = end - timedelta(days=days)
    months = -(-days // 30)  # ceil
    balance = float(OPENING_BALANCE[risk_level])
    counter = 0
    rows: List[_Row] = []

    def next_id() -> str:
        nonlocal counter
        counter += 1
        return f"TXN-{customer_id}-{counter:05d}"

    if include_salary:
        for month in range(months):
            salary_date = start + timedelta(days=month * 30 + _salary_day(risk_level, month))
            if salary_date > end:
                continue
            amount = round(max(_salary_amount(risk_level, month), MIN_SALARY))
            balance += amount
            rows.append(_Row(next_id(), salary_date, amount, "credit", "salary",
                             round(balance), "Employer Corp", "NetBanking"))

    if risk_level != RiskBand.LOW:
        for month in range(months):
            repay_day = 12 + month * 5 if risk_level == RiskBand.CRITICAL else 10
            repay_date = start + timedelta(days=month * 30 + repay_day)
            if repay_date > end:
                continue
            balance -= MONTHLY_REPAYMENT
            rows.append(_Row(next_id(), repay_date, MONTHLY_REPAYMENT, "debit", "loan_repayment",
                             round(balance), "Bank EMI", "AutoDebit"))

    remaining = max(num_transactions - len(rows), 0)
    spread = days / max(remaining, 1)

    for i in range(remaining):
        offset = min(round(i * spread + rng.random() * spread), days - 1)
        txn_date = start + timedelta(days=offset)
        is_debit = rng.random() > 0.3

        if is_debit:
            if risk_level == RiskBand.CRITICAL and rng.random() > 0.5:
                category = rng.choice(HIGH_RISK_DEBIT_CATEGORIES)
            elif risk_level == RiskBand.HIGH and rng.random() > 0.65:
                category = rng.choice(HIGH_RISK_DEBIT_CATEGORIES[:2])
            else:
                category = rng.choice(DEBIT_CATEGORIES)
            if risk_level == RiskBand.CRITICAL:
                amount = round(rng.random() * 8000 + 500)
            else:
                amount = round(rng.random() * 5000 + 200)
            channel = "ATM" if "atm" in category else rng.choice(CHANNELS)
            balance -= amount
        else:
            category = rng.choice(CREDIT_CATEGORIES[1:])
            amount = round(rng.random() * 3000 + 100)
            channel = rng.choice(CHANNELS)
            balance += amount

        rows.append(_Row(next_id(), txn_date, amount, "debit" if is_debit else "credit", category,
                         round(max(balance, 0)), f"{category.capitalize()} Merchant", channel))

    rows.sort(key=lambda r: r.day)

    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    name = customer_name_for(customer_id)
    for r in rows:
        writer.writerow([r.txn_id, customer_id, name, r.day.isoformat(), r.amount, r.type,
                         r.category, r.balance, r.merchant, r.channel])
    return out.getvalue()
