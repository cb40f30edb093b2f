from fastapi import APIRouter, Depends

from ..core.config import Settings, get_settings
from ..core.errors import NotFound
from ..schemas.movie import MessageResponse, MovieCreate, MovieRead
from ..services.catalog import (
    RecordLister,
    RecordReader,
    RecordWriter,
    get_record_lister,
    get_record_reader,
    get_record_writer,
)

router = APIRouter(prefix="/movies", tags=["movies"])


@router.get("", response_model=list[MovieRead], responses={404: {"model": MessageResponse}})
def list_movies(lister: RecordLister = Depends(get_record_lister), settings: Settings = Depends(get_settings)):
    movies = lister.list_all()
    if not movies and settings.empty_listing_not_found:
        raise NotFound("No movies found.")
    return movies


@router.post("", response_model=MovieRead, responses={400: {"model": MessageResponse}})
def create_movie(payload: MovieCreate, writer: RecordWriter = Depends(get_record_writer)):
    return writer.create(payload)


@router.get("/{movie_id}", response_model=MovieRead, responses={404: {"model": MessageResponse}})
def get_movie(movie_id: str, reader: RecordReader = Depends(get_record_reader)):
    return reader.get_by_id(movie_id)
