import os

from feedback_system.main import app  # noqa: F401

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "feedback_system.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", 8000)),
    )
