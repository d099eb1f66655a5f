"""Admin router for fleet inventory and enquiry triage.

Every endpoint requires a bearer token carrying the ``admin`` role.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import get_current_admin, get_db
from ..schemas.car import Car, CreateCarRequest, DeleteCarsRequest, DeleteCarsResponse, UpdateCarRequest
from ..schemas.common import problem_responses
from ..schemas.enquiry import (
    Enquiry,
    ListEnquiriesRequest,
    ListEnquiriesResponse,
    UpdateEnquiryStatusRequest,
)
from ..services.enquiry_service import EnquiryService
from ..services.fleet_service import FleetService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/v1/admin",
    tags=["admin"],
    dependencies=[Depends(get_current_admin)],
    responses=problem_responses(401, 403),
)

DB_DEPENDENCY = Depends(get_db)


@router.post("/cars/list", response_model=list[Car])
async def list_cars(db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    """All cars, including hidden ones, cheapest first."""
    cars = await FleetService(db).list_cars()
    return JSONResponse(
        status_code=200,
        content=[Car.model_validate(car).model_dump(mode="json") for car in cars]
    )


@router.post("/cars/create", response_model=Car, responses=problem_responses(400))
async def create_car(request: CreateCarRequest, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    car = await FleetService(db).create_car(request)
    return JSONResponse(status_code=200, content=Car.model_validate(car).model_dump(mode="json"))


@router.post("/cars/update", response_model=Car, responses=problem_responses(400, 404))
async def update_car(request: UpdateCarRequest, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    """Change only the fields present in the request body."""
    car = await FleetService(db).update_car(request)
    return JSONResponse(status_code=200, content=Car.model_validate(car).model_dump(mode="json"))


@router.post("/cars/delete", response_model=DeleteCarsResponse, responses=problem_responses(400))
async def delete_cars(request: DeleteCarsRequest, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    deleted = await FleetService(db).delete_cars(request.car_ids)
    return JSONResponse(status_code=200, content=DeleteCarsResponse(deleted=deleted).model_dump())


@router.post("/cars/delete-all", response_model=DeleteCarsResponse)
async def delete_all_cars(db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    deleted = await FleetService(db).delete_all_cars()
    return JSONResponse(status_code=200, content=DeleteCarsResponse(deleted=deleted).model_dump())


@router.post("/enquiries/list", response_model=ListEnquiriesResponse)
async def list_enquiries(request: ListEnquiriesRequest, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    """Newest enquiries first, optionally filtered by status."""
    enquiries = await EnquiryService(db).list_enquiries(status=request.status, limit=request.limit)
    response_data = ListEnquiriesResponse(
        enquiries=[Enquiry.model_validate(enquiry) for enquiry in enquiries],
        total=len(enquiries),
    )
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))


@router.post("/enquiries/update-status", response_model=Enquiry, responses=problem_responses(400, 404))
async def update_enquiry_status(
    request: UpdateEnquiryStatusRequest,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    enquiry = await EnquiryService(db).update_status(request.enquiry_id, request.status)
    logger.info(
        "Enquiry triaged",
        extra={"enquiry_id": request.enquiry_id, "status": request.status.value}
    )
    return JSONResponse(status_code=200, content=Enquiry.model_validate(enquiry).model_dump(mode="json"))
