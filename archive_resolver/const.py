MEDIA_LINK_HEADERS = {
    "Accept": "*/*",
    "Accept-Encoding": "gzip, deflate, br",
}

PAGE_REQUEST_HEADERS = {
    "accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "accept-language": "en-US,en;q=0.5",
}

# Content types whose body is never read when fetching a page.
MEDIA_CONTENT_TYPES = (
    "video/",
    "audio/",
    "application/octet-stream",
    "application/vnd.apple.mpegurl",
    "application/x-mpegurl",
    "audio/mpegurl",
)

DIRECT_MEDIA_EXTENSIONS = ("mp4", "m3u8")

MEDIA_FILE_EXTENSIONS = ("mp4", "m3u8", "mkv", "avi", "m4v", "webm", "mov")

DOWNLOAD_ANCHOR_EXTENSIONS = (".mp4", ".mkv", ".avi", ".m4v", ".m3u8")

SUPPORTED_REQUEST_HEADERS = [
    "accept-language",
    "user-agent",
    "referer",
    "origin",
    "cookie",
]
