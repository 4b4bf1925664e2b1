"""
Startup script for the FanChat API
"""
import os
import uvicorn
from fanchat.main import app

if __name__ == "__main__":
    port = int(os.environ.get("PORT", "8000"))
    uvicorn.run(
        app,                 # pass the app object (avoids double import)
        host="0.0.0.0",
        port=port,
        reload=False,
        log_level="info",
        workers=1            # live subscriptions are process-local
    )
