"""
Run the CryptoScan backend server.
"""
import os

# Load environment
from dotenv import load_dotenv

root_dir = os.path.dirname(os.path.abspath(__file__))
load_dotenv(os.path.join(root_dir, ".env"))

# Run uvicorn
import uvicorn

from cryptoscan.core.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    print("Starting CryptoScan Backend Server...")
    print(f"API Docs: http://localhost:{settings.port}/docs")
    print("-" * 50)

    uvicorn.run(
        "cryptoscan.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
