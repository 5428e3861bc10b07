from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from . import config
from .errors import ImageShareError, StorageError, ValidationError
from .ingestion import ImageValidator
from .models import Post
from .object_store import ContentStore, LocalContentStore, MinioContentStore, content_type_for
from .repositories import InMemoryPostRepository, PostRepository, SqlPostRepository
from .service import PostService, parse_post_id, parse_sort

log = logging.getLogger("imageshare")


# ---- Component wiring ----
def build_content_store(settings: config.Settings) -> ContentStore:
    if settings.STORAGE_BACKEND == "minio":
        return MinioContentStore(
            settings.MINIO_ENDPOINT,
            access_key=settings.MINIO_ACCESS_KEY,
            secret_key=settings.MINIO_SECRET_KEY,
            bucket_name=settings.MINIO_BUCKET,
            secure=settings.MINIO_SECURE,
        )
    return LocalContentStore(settings.UPLOAD_DIR)


def build_repository(settings: config.Settings) -> PostRepository:
    if settings.REPOSITORY_BACKEND == "sql":
        return SqlPostRepository(settings.DATABASE_URL)
    return InMemoryPostRepository()


def build_service(settings: config.Settings) -> PostService:
    return PostService(
        validator=ImageValidator(
            max_bytes=settings.MAX_UPLOAD_BYTES,
            allowed_types=settings.ALLOWED_IMAGE_TYPES,
        ),
        content=build_content_store(settings),
        posts=build_repository(settings),
    )


def get_post_service(request: Request) -> PostService:
    return request.app.state.post_service


def create_app(
    settings: Optional[config.Settings] = None,
    post_service: Optional[PostService] = None,
) -> FastAPI:
    settings = settings or config.get_settings()

    app = FastAPI(title=settings.APP_NAME, version=settings.VERSION)
    app.state.post_service = post_service or build_service(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def prepare_storage() -> None:
        logging.basicConfig(
            level=settings.LOG_LEVEL,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
        app.state.post_service.content.ensure_ready()
        app.state.post_service.posts.ensure_ready()
        log.info(
            "Storage ready (%s, %s)",
            type(app.state.post_service.content).__name__,
            type(app.state.post_service.posts).__name__,
        )

    @app.on_event("shutdown")
    def release_repository() -> None:
        app.state.post_service.posts.close()

    @app.exception_handler(ImageShareError)
    async def image_share_error_handler(request: Request, exc: ImageShareError):
        if isinstance(exc, StorageError):
            log.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
            message = "Failed to create post" if request.method == "POST" else "Failed to read image"
            return JSONResponse(status_code=exc.status_code, content={"message": message})
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = "Invalid request"
        if any(err["loc"][-1:] == ("image",) for err in errors):
            message = "No image file uploaded"
        details = [f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in errors]
        error = ValidationError(message, errors=details)
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        log.error("Unhandled error: %s", exc, exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Internal server error"},
        )

    # ---- API Endpoints ----
    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "service": settings.APP_NAME, "version": settings.VERSION}

    @app.get("/api/posts", response_model=List[Post])
    def list_posts(
        sort: Optional[str] = None,
        service: PostService = Depends(get_post_service),
    ) -> List[Post]:
        return service.list_posts(parse_sort(sort))

    @app.get("/api/posts/{post_id}", response_model=Post)
    def get_post(post_id: str, service: PostService = Depends(get_post_service)) -> Post:
        return service.get_post(parse_post_id(post_id))

    @app.post("/api/posts", response_model=Post, status_code=status.HTTP_201_CREATED)
    async def create_post(
        title: Optional[str] = Form(None),
        description: Optional[str] = Form(None),
        image: Optional[UploadFile] = File(None),
        service: PostService = Depends(get_post_service),
    ) -> Post:
        if image is None:
            raise ValidationError("No image file uploaded")
        if image.size is not None:
            service.check_upload(image.content_type, image.size)
        # One byte past the limit is enough for the size check to reject it.
        data = await image.read(service.validator.max_bytes + 1)
        return service.create_post(
            title=title,
            description=description,
            content_type=image.content_type,
            data=data,
        )

    @app.post("/api/posts/{post_id}/like", response_model=Post)
    def like_post(post_id: str, service: PostService = Depends(get_post_service)) -> Post:
        return service.like_post(parse_post_id(post_id))

    @app.post("/api/posts/{post_id}/dislike", response_model=Post)
    def dislike_post(post_id: str, service: PostService = Depends(get_post_service)) -> Post:
        return service.dislike_post(parse_post_id(post_id))

    @app.get("/uploads/{name}")
    def get_upload(name: str, service: PostService = Depends(get_post_service)) -> Response:
        content = service.content.read(name)
        return Response(content=content, media_type=content_type_for(name))

    return app


app = create_app()
