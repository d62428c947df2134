"""
FastAPI main application entry point.
"""

import json
import os
import uvicorn

# Import logging system first
from core.logging import setup_logging, get_logger

# Setup logging early
setup_logging()
logger = get_logger("main")

from app import app

os.makedirs("cache", exist_ok=True)


# Run the application
if __name__ == "__main__":
    # Export OpenAPI schema to a JSON file
    try:
        logger.info("Exporting OpenAPI schema")
        openapi_schema = app.openapi()
        output_path = "cache/openapi.json"
        with open(output_path, "w") as f:
            json.dump(openapi_schema, f, indent=2)
        logger.info("OpenAPI schema successfully exported", output_path=output_path)
    except OSError as e:
        logger.error("Error exporting OpenAPI schema", error=str(e), exc_info=True)

    logger.info("Starting uvicorn server", host="0.0.0.0", port=8000)
    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
        reload_excludes=["*.pyc", "*.log", "*.db", "*.json"],
        reload_includes=["*.py"],
    )
