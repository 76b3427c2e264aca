from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from eyerecords.api.deps import build_record_store
from eyerecords.api.routes import patients

app = FastAPI(title="Eyewear Patient Records")


@app.on_event("startup")
def startup():
    """Build the record store for the configured backend."""
    # Firestore backend reads credentials from FIREBASE_CREDENTIALS
    if getattr(app.state, "record_store", None) is None:
        app.state.record_store = build_record_store()


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    # The rejected input is left out: it may be a non-finite float JSON cannot carry
    errors = [
        {k: v for k, v in err.items() if k not in ("input", "ctx")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(errors)})


@app.get("/")
async def root():
    return {"message": "Eyewear Patient Records is running"}


@app.get("/health")
async def health_check():
    return {"status": "ok"}


# Include API routers
app.include_router(patients.router)
