"""
Families and the family pool.

A family keeps a fixed base income drawn at arrival; each day the economic
calculator recomputes its actual income from that base and the city's job,
education and difficulty conditions. Employment persists across days.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

BASE_INCOME_MIN = 40
BASE_INCOME_MAX = 60
INITIAL_EMPLOYMENT_RATE = 0.8

JOB_QUALITY_BONUS = 0.3
JOB_SHORTAGE_PENALTY = 0.4
UNEMPLOYED_INCOME_FACTOR = 0.6
HIRED_INCOME_FACTOR = 1.5
HIRING_CHANCE = 0.2
EDUCATION_BONUS = 0.25


@dataclass
class Family:
    """One household."""
    base_income: int
    income: int
    employed: bool

    @classmethod
    def random(cls, rng: np.random.Generator) -> Family:
        """A newly arrived family: income in [40, 60], 80% employed."""
        base = int(rng.integers(BASE_INCOME_MIN, BASE_INCOME_MAX + 1))
        employed = bool(rng.random() < INITIAL_EMPLOYMENT_RATE)
        return cls(base_income=base, income=base, employed=employed)

    def update_income(
        self,
        job_quality_ratio: float,
        job_ratio: float,
        education_ratio: float,
        difficulty_scaling: float,
        rng: np.random.Generator,
    ) -> int:
        """Recompute today's income. Draws exactly one random number."""
        roll = rng.random()
        income = self.base_income
        income += int(income * job_quality_ratio * JOB_QUALITY_BONUS)

        if job_ratio < 1.0:
            # Penalty uses the employment status from before today's transition
            income -= int(income * (1.0 - job_ratio) * JOB_SHORTAGE_PENALTY)
            if not self.employed:
                income = int(income * UNEMPLOYED_INCOME_FACTOR)
            elif roll > job_ratio:
                self.employed = False
                income = int(income * UNEMPLOYED_INCOME_FACTOR)
        elif not self.employed and roll < HIRING_CHANCE:
            self.employed = True
            income = int(income * HIRED_INCOME_FACTOR)

        income += int(income * education_ratio * EDUCATION_BONUS)
        self.income = max(0, int(income * difficulty_scaling))
        return self.income


class FamilyPool:
    """Ordered families: arrivals append at the end, departures leave from the end."""

    def __init__(self, families: list[Family] | None = None):
        self._families: list[Family] = list(families) if families else []

    @classmethod
    def populate(cls, count: int, rng: np.random.Generator) -> FamilyPool:
        pool = cls()
        for _ in range(count):
            pool.add(rng)
        return pool

    def __len__(self) -> int:
        return len(self._families)

    def count(self) -> int:
        return len(self._families)

    @property
    def families(self) -> tuple[Family, ...]:
        return tuple(self._families)

    def add(self, rng: np.random.Generator) -> Family:
        family = Family.random(rng)
        self._families.append(family)
        return family

    def remove(self, count: int) -> int:
        """Remove up to ``count`` families from the end; return how many left."""
        actual = max(0, min(count, len(self._families)))
        if actual:
            del self._families[-actual:]
        return actual

    def update_incomes(
        self,
        job_quality_ratio: float,
        job_ratio: float,
        education_ratio: float,
        difficulty_scaling: float,
        rng: np.random.Generator,
    ) -> int:
        """Recompute every family's income; return the new total."""
        return sum(
            f.update_income(
                job_quality_ratio, job_ratio, education_ratio,
                difficulty_scaling, rng,
            )
            for f in self._families
        )

    def total_income(self) -> int:
        return sum(f.income for f in self._families)

    def average_income(self) -> int:
        if not self._families:
            return 0
        return self.total_income() // len(self._families)

    def employment_rate(self) -> float:
        if not self._families:
            return 0.0
        return float(np.mean([f.employed for f in self._families]))
