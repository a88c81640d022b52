import logging
from typing import Annotated, Dict

from fastapi import APIRouter, Depends, HTTPException, Query

from archive_resolver.extractors.base import ExtractorError
from archive_resolver.extractors.factory import ExtractorFactory
from archive_resolver.schemas import ExtractorURLParams, ResolveResponse
from archive_resolver.utils.base64_utils import process_potential_base64_url
from archive_resolver.utils.http_utils import HttpFetcher, get_fetcher, get_request_headers

extractor_router = APIRouter()
logger = logging.getLogger(__name__)


@extractor_router.head("/links")
@extractor_router.get("/links", response_model=ResolveResponse)
async def extract_links(
    extractor_params: Annotated[ExtractorURLParams, Query()],
    request_headers: Annotated[Dict[str, str], Depends(get_request_headers)],
    fetcher: Annotated[HttpFetcher, Depends(get_fetcher)],
):
    """Resolve a page URL into playable media links."""
    try:
        destination = process_potential_base64_url(extractor_params.destination)
        extractor = ExtractorFactory.get_extractor(
            extractor_params.host,
            request_headers,
            fetcher=fetcher,
            stop_on_first_match=extractor_params.stop_on_first_match,
        )
        links = await extractor.extract(destination, extractor_params.referer)
        logger.info(f"Resolved {len(links)} link(s) for {destination} with {extractor_params.host}")
        return ResolveResponse(links=links)

    except ExtractorError as e:
        logger.error(f"Extraction failed: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Extraction failed: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Extraction failed: {str(e)}")
