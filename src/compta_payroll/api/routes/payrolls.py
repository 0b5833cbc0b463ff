"""Payroll API endpoints."""

from typing import Annotated

from fastapi import APIRouter, HTTPException, Path, Query, Response, status

from compta_payroll.api.dependencies import CompanyId, DbSession, PayrollServiceDep
from compta_payroll.api.schemas import (
    ErrorResponse,
    PayrollCalculateRequest,
    PayrollCalculationResponse,
    PayrollCreate,
    PayrollListResponse,
    PayrollResponse,
)
from compta_payroll.services.payroll_service import DuplicatePeriodError, EmployeeNotFoundError

router = APIRouter(prefix="/payrolls", tags=["payrolls"])


# ============================================================================
# Reads
# ============================================================================


@router.get("", response_model=PayrollListResponse)
async def list_payrolls(
    service: PayrollServiceDep,
    company_id: CompanyId,
    year: Annotated[int | None, Query(ge=2000, le=3000)] = None,
    month: Annotated[int | None, Query(ge=1, le=12)] = None,
) -> PayrollListResponse:
    """List payroll records, optionally filtered by period."""
    payrolls = await service.list_payrolls(company_id, year, month)
    return PayrollListResponse(
        items=[PayrollResponse.from_payroll(p) for p in payrolls],
        total=len(payrolls),
    )


@router.get(
    "/{payroll_id}",
    response_model=PayrollResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_payroll(
    service: PayrollServiceDep,
    company_id: CompanyId,
    payroll_id: Annotated[int, Path(gt=0)],
) -> PayrollResponse:
    """Get a payroll record by ID."""
    payroll = await service.get_payroll(payroll_id, company_id)
    if payroll is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Payroll not found",
        )
    return PayrollResponse.from_payroll(payroll)


# ============================================================================
# Calculation
# ============================================================================


@router.post(
    "/calculate",
    response_model=PayrollCalculationResponse,
    responses={404: {"model": ErrorResponse}},
)
async def calculate_payroll(
    service: PayrollServiceDep,
    company_id: CompanyId,
    payload: PayrollCalculateRequest,
) -> PayrollCalculationResponse:
    """Preview a payroll calculation without persisting it."""
    try:
        result = await service.calculate_for_employee(
            payload.employee_id,
            company_id,
            worked_days=payload.worked_days,
            allowances=payload.allowances,
            other_deductions=payload.other_deductions,
        )
    except EmployeeNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Employee not found",
        )
    return PayrollCalculationResponse.from_result(result)


# ============================================================================
# Record lifecycle
# ============================================================================


@router.post(
    "",
    response_model=PayrollResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def create_payroll(
    db: DbSession,
    service: PayrollServiceDep,
    company_id: CompanyId,
    payload: PayrollCreate,
) -> PayrollResponse:
    """Create a draft payroll record for one employee and month."""
    try:
        payroll = await service.create_payroll(
            company_id=company_id,
            employee_id=payload.employee_id,
            year=payload.period_year,
            month=payload.period_month,
            worked_days=payload.worked_days,
            total_allowances=payload.total_allowances,
            other_deductions=payload.other_deductions,
            payment_date=payload.payment_date,
        )
    except EmployeeNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Employee not found",
        )
    except DuplicatePeriodError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Payroll already exists for this period",
        )

    await db.commit()
    created = await service.get_payroll(payroll.id, company_id)
    return PayrollResponse.from_payroll(created)


@router.post(
    "/{payroll_id}/approve",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={400: {"model": ErrorResponse}},
)
async def approve_payroll(
    db: DbSession,
    service: PayrollServiceDep,
    company_id: CompanyId,
    payroll_id: Annotated[int, Path(gt=0)],
) -> Response:
    """Approve a draft payroll record."""
    if not await service.approve_payroll(payroll_id, company_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Failed to approve payroll",
        )
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
