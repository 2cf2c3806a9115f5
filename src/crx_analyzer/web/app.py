"""
Extension Risk Analyzer - Web Interface
FastAPI backend for analyzing uploaded or store-hosted extensions
"""

import asyncio
import json
from typing import Optional

import uvicorn
from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import Response
from pydantic import ValidationError

from ..analyzer import ExtensionAnalyzer
from ..config import load_config
from ..downloader import BrowserType, DownloadError, ExtensionDownloader, validate_extension_id
from ..errors import AnalysisError
from ..models import AnalysisResult, ReputationData
from ..store_metadata import StoreMetadata

config = load_config()

app = FastAPI(
    title="Extension Risk Analyzer",
    description="Static risk assessment for Chrome and Edge extension packages",
    version="0.1.0"
)


def _parse_store(store: str) -> BrowserType:
    try:
        return BrowserType(store.strip().lower())
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid store. Use 'chrome' or 'edge'.")


def _parse_extension_id(extension_id: str) -> str:
    extension_id = extension_id.strip().lower()
    if not validate_extension_id(extension_id):
        raise HTTPException(status_code=400, detail="Invalid extension ID. Must be 32 lowercase characters.")
    return extension_id


def _run_analysis(package_bytes: bytes, reputation: Optional[ReputationData] = None) -> AnalysisResult:
    try:
        return ExtensionAnalyzer(verbose=False).analyze(package_bytes, reputation)
    except AnalysisError as e:
        raise HTTPException(status_code=400, detail=f"{type(e).__name__}: {e}")


def _download(extension_id: str, store: BrowserType) -> bytes:
    try:
        return ExtensionDownloader(config).download_extension(extension_id, store, show_progress=False)
    except DownloadError as e:
        raise HTTPException(status_code=502, detail=str(e))


@app.post("/analyze", response_model=AnalysisResult)
async def analyze_upload(file: UploadFile = File(...), reputation: Optional[str] = Form(None)):
    """Analyze an uploaded .crx/.zip package; reputation is optional ReputationData JSON"""
    max_bytes = config['web']['max_upload_bytes']
    package_bytes = await file.read(max_bytes + 1)
    if len(package_bytes) > max_bytes:
        raise HTTPException(status_code=413, detail=f"Package larger than {max_bytes} bytes")

    reputation_data = None
    if reputation:
        try:
            reputation_data = ReputationData(**json.loads(reputation))
        except (ValueError, TypeError, ValidationError) as e:
            raise HTTPException(status_code=400, detail=f"Invalid reputation data: {e}")

    # Unpacking and scanning are CPU bound and must stay off the event loop
    return await asyncio.to_thread(_run_analysis, package_bytes, reputation_data)


@app.post("/analyze/{store}/{extension_id}", response_model=AnalysisResult)
def analyze_from_store(store: str, extension_id: str, include_reputation: bool = True):
    """Download an extension from its store and analyze it"""
    browser = _parse_store(store)
    extension_id = _parse_extension_id(extension_id)

    package_bytes = _download(extension_id, browser)
    reputation = None
    if include_reputation:
        reputation = StoreMetadata(config).fetch_reputation(extension_id, browser.value)

    return _run_analysis(package_bytes, reputation)


@app.get("/api/proxy")
def proxy_download(id: str, store: str):
    """Return the raw .crx package for an extension"""
    browser = _parse_store(store)
    extension_id = _parse_extension_id(id)

    package_bytes = _download(extension_id, browser)
    return Response(
        content=package_bytes,
        media_type="application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{extension_id}.crx"'},
    )


def main():
    web = config['web']
    print("\n" + "=" * 50)
    print("Extension Risk Analyzer - Web Interface")
    print("=" * 50)
    print(f"\nStarting server at http://{web['host']}:{web['port']}\n")

    uvicorn.run(app, host=web['host'], port=web['port'])


if __name__ == "__main__":
    main()
