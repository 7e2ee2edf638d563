#!/usr/bin/env python
"""Script to run the StudyTrack backend server."""
import os

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "studytrack.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=True,
    )
