import os
import threading
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from swapwatch.internal.logger import init_logging, info, warn, error, green_text
from swapwatch.internal.blockchain.client import ChainClient
from swapwatch.internal.storage.memory import ObservationStore
from swapwatch.internal.utils.config import ConfigError, load_config
from swapwatch.internal.utils.helpers import to_hex
from swapwatch.internal.watcher.service import SwapWatcher

# -----------------------------------------------------------------------------
# Logging init (custom logger)
# -----------------------------------------------------------------------------
init_logging()

app = FastAPI(title="swapwatch")


class StatusResponse(BaseModel):
    running: bool
    head: Optional[int] = None
    last_reported_block: Optional[int] = None
    cycles: int = 0
    observations: int = 0
    confirmation_depth: int
    retention_blocks: int = 0
    fatal_error: Optional[str] = None


class ObservationOut(BaseModel):
    block_number: int
    block_hash: str
    log_count: int


class TradeOut(BaseModel):
    sender: str
    recipient: str
    amount0: float
    amount1: float
    direction: str
    block_number: Optional[int] = None
    transaction_hash: Optional[str] = None
    log_index: Optional[int] = None


# -----------------------------------------------------------------------------
# Watcher thread
# -----------------------------------------------------------------------------
STOP_JOIN_TIMEOUT = 3.0

def _terminate(code: int):
    os._exit(code)

def _run_watcher(app: FastAPI, stop_event: threading.Event):
    try:
        app.state.watcher.run_forever(
            poll_interval=app.state.config.poll_interval,
            stop_event=stop_event,
            start_block=app.state.watcher.head + 1 if app.state.watcher.head is not None else None,
        )
    except Exception as e:
        # Reorganizations, decode failures and transport errors are all fatal
        app.state.fatal_error = str(e)
        error(f"Swap watcher aborted: {e}")
        _terminate(1)
    finally:
        app.state.running = False

def start_watcher(app: FastAPI) -> bool:
    """Starts a watcher thread unless one is running or still finishing a cycle."""
    app.state.threads = [t for t in getattr(app.state, "threads", []) if t.is_alive()]

    if app.state.threads:
        if getattr(app.state, "running", False):
            info("Swap watcher already running; ignoring start request")
        else:
            warn("Previous swap watcher thread has not exited yet; ignoring start request")
        return False

    # One event per run: a thread that outlived its stop request keeps seeing it set
    stop_event = threading.Event()
    app.state.stop_event = stop_event
    app.state.running = True
    info("Swap watcher loop started")

    t = threading.Thread(
        target=_run_watcher,
        args=(app, stop_event),
        name="SwapWatcher",
        daemon=True
    )
    t.start()
    app.state.threads.append(t)
    return True

def stop_watcher(app: FastAPI):
    if hasattr(app.state, "stop_event"):
        app.state.stop_event.set()

    for t in getattr(app.state, "threads", []):
        try:
            t.join(timeout=STOP_JOIN_TIMEOUT)
        except RuntimeError as e:
            warn(f"Failed joining thread {t.name}: {e}")

    # Threads stuck in a slow cycle stay tracked so no second one is started
    remaining = [t for t in getattr(app.state, "threads", []) if t.is_alive()]
    for t in remaining:
        warn(f"Thread {t.name} still finishing its cycle after {STOP_JOIN_TIMEOUT}s")
    app.state.threads = remaining
    app.state.running = False

# -----------------------------------------------------------------------------
# Startup
# -----------------------------------------------------------------------------
@app.on_event("startup")
async def startup():
    try:
        config = load_config()
    except ConfigError as e:
        error(f"Configuration error: {str(e)}")
        raise SystemExit(1)

    app.state.config = config
    app.state.client = ChainClient(
        eth_node_url=config.eth_node_url,
        abi_path=config.abi_path,
        contract_address=config.contract_address,
        event_name=config.event_name,
        request_timeout=config.request_timeout,
    )
    app.state.store = ObservationStore()
    app.state.watcher = SwapWatcher(
        client=app.state.client,
        store=app.state.store,
        token0=config.token0,
        token1=config.token1,
        retention_blocks=config.retention_blocks,
        reorg_check_workers=config.reorg_check_workers,
        trades_kept=config.trades_kept,
    )
    app.state.fatal_error = None
    app.state.running = False
    app.state.stop_event = threading.Event()
    app.state.threads = []

    if config.auto_start:
        start_watcher(app)

    info(green_text("Startup completed for pool %s"), config.contract_address)

# -----------------------------------------------------------------------------
# API routes
# -----------------------------------------------------------------------------
def _watcher_or_503() -> SwapWatcher:
    watcher = getattr(app.state, "watcher", None)
    if watcher is None:
        raise HTTPException(status_code=503, detail="Swap watcher not initialized")
    return watcher

@app.get("/")
def root_endpoint():
    return {"message": "Swap watcher running."}

@app.get("/status", response_model=StatusResponse)
def status_endpoint():
    watcher = _watcher_or_503()
    return StatusResponse(
        running=getattr(app.state, "running", False),
        fatal_error=getattr(app.state, "fatal_error", None),
        **watcher.status(),
    )

@app.get("/observations", response_model=List[ObservationOut])
def observations_endpoint():
    watcher = _watcher_or_503()
    return [
        ObservationOut(block_number=n, block_hash=to_hex(obs.block_hash), log_count=len(obs.logs))
        for n, obs in watcher.store.items()
    ]

@app.get("/trades", response_model=List[TradeOut])
def trades_endpoint(limit: Optional[int] = None):
    watcher = _watcher_or_503()
    return [TradeOut(**t) for t in watcher.trades(limit)]

@app.post("/start")
def start_endpoint():
    _watcher_or_503()
    if start_watcher(app):
        return {"message": "Swap watcher started."}
    if getattr(app.state, "running", False):
        return {"message": "Swap watcher already running."}
    raise HTTPException(status_code=409, detail="Swap watcher is still stopping; retry shortly")

@app.post("/stop")
def stop_endpoint():
    stop_watcher(app)
    return {"message": "Swap watcher stopped."}

# -----------------------------------------------------------------------------
# Shutdown
# -----------------------------------------------------------------------------
@app.on_event("shutdown")
async def shutdown():
    stop_watcher(app)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("swapwatch.main:app", host="0.0.0.0", port=8080)
