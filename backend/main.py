from fastapi import Depends, FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect, status
from dotenv import load_dotenv

load_dotenv()
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from database import Base, engine, get_db
from datetime import datetime
from exceptions import WorkflowError
from utils.events import event_bus
from utils.auth_utils import bearer_token, resolve_actor
from utils.realtime import manager
import models  # noqa: F401  registers every table on Base.metadata
import routers.inventory_items as inventory_items
import routers.categories as categories
import routers.inventory_requests as inventory_requests
import routers.released_orders as released_orders
import routers.notifications as notifications
import routers.audit as audit
import routers.dashboard as dashboard
import routers.reports as reports
import asyncio
import os
import logging
from typing import Optional
from sqlalchemy.orm import Session
from fastapi.openapi.utils import get_openapi


LOG_DIR = os.getenv("LOG_DIR", "logs")
os.makedirs(LOG_DIR, exist_ok=True) # Create the log directory if it doesn't exist

# Create a unique log file name based on current date/time
current_time_str = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
LOG_FILE = os.path.join(LOG_DIR, f"app_{current_time_str}.log")

# Configure the root logger
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    filename=LOG_FILE, # Log to a file
    filemode='a' # Append to the file if it exists
)

# Also log to the console
console_handler = logging.StreamHandler()
console_handler.setLevel(logging.INFO)
console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
logging.getLogger().addHandler(console_handler)

logger = logging.getLogger(__name__)
logger.info("Application starting up...")
# --- End Logging Configuration ---


# Create database tables
Base.metadata.create_all(bind=engine)


app = FastAPI()


allowed_origins_str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:5173,http://127.0.0.1:5173"
)

# Split the string into a list, stripping any whitespace
allowed_origins = [origin.strip() for origin in allowed_origins_str.split(',')]

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(WorkflowError)
async def workflow_error_handler(request: Request, exc: WorkflowError):
    if exc.status_code >= 409:
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title="Supply Office Inventory API",
        version="1.0.0",
        description="Inventory, request approval and supplies release for the supply office",
        routes=app.routes,
    )
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
    }
    # Apply security globally to all endpoints
    openapi_schema["security"] = [{"BearerAuth": []}]
    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi


app.include_router(inventory_items.router)
app.include_router(categories.router)
app.include_router(inventory_requests.router)
app.include_router(released_orders.router)
app.include_router(notifications.router)
app.include_router(audit.router)
app.include_router(dashboard.router)
app.include_router(reports.router)

_unsubscribe_realtime = None


@app.on_event("startup")
async def start_realtime():
    global _unsubscribe_realtime
    manager.bind_loop(asyncio.get_running_loop())
    _unsubscribe_realtime = event_bus.subscribe(manager.handle_event)


@app.on_event("shutdown")
async def stop_realtime():
    if _unsubscribe_realtime is not None:
        _unsubscribe_realtime()
    manager.bind_loop(None)


@app.websocket("/ws")
async def realtime_channel(websocket: WebSocket, token: Optional[str] = None, db: Session = Depends(get_db)):
    # Token from the query string, else the Authorization header
    try:
        actor = resolve_actor(db, token or bearer_token(websocket))
    except HTTPException as exc:
        logger.warning(f"Realtime connection refused: {exc.detail}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    finally:
        db.close()

    await manager.connect(actor.id, websocket)
    try:
        while True:
            # Clients only listen; incoming frames are keep-alives
            await websocket.receive_text()
    except WebSocketDisconnect:
        manager.disconnect(actor.id, websocket)


@app.get("/")
async def test_route():
    return {"message": "Welcome to the Supply Office Inventory API!"}
