from fastapi import FastAPI

from rowbot.api.v1.debug import router as debug_router
from rowbot.api.v1.slack import router as slack_router

app = FastAPI(title="rowbot")

# Routers
app.include_router(slack_router)
app.include_router(debug_router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
