from fastapi import APIRouter

from api.common import error_response, respond
from models import db
from services.records import create_container, list_containers


router = APIRouter()


@router.get("/timelines")
def get_timelines():
    try:
        return {"timelines": list_containers("timeline")}
    except db.StoreError as e:
        return error_response(502, str(e))


@router.post("/timelines")
def post_timeline():
    return respond(create_container("timeline"))


@router.get("/histories")
def get_histories():
    try:
        return {"histories": list_containers("history")}
    except db.StoreError as e:
        return error_response(502, str(e))


@router.post("/histories")
def post_history():
    return respond(create_container("history"))
