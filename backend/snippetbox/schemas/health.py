from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for monitoring and load balancer probes.
    """

    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    active_sessions: int = Field(description="Sessions currently held by the session store")
    uptime_seconds: float = Field(description="Seconds since service started")
