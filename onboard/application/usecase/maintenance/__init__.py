"""Maintenance use cases."""

from onboard.application.usecase.maintenance.sweep_expired import (
    SweepExpiredRequest,
    SweepExpiredResponse,
    SweepExpiredUseCase,
)

__all__ = ["SweepExpiredRequest", "SweepExpiredResponse", "SweepExpiredUseCase"]
