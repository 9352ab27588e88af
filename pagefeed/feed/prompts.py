"""System instruction sent to AI providers.

Bump :data:`FEED_EXTRACTION_PROMPT_VERSION` whenever the text changes so
logged requests can be tied to the instruction they were made with.
"""

FEED_EXTRACTION_PROMPT_VERSION = "1.0"

FEED_EXTRACTION_PROMPT = """\
Convert the main content of the following web page into a standard JSON Feed document.
- Every field shown in the example below is mandatory. Do not copy the example values;
  fill each field from the actual page content.
- "id" must be a unique numeric identifier; derive it from the item's url when possible.
- "url" must be the full, absolute URL of the item.
- "title" must be the item's title.
- "image" must be the item's main image URL. If there is none, pick an image URL from the content.
- "date_published" must be the item's publication date in ISO 8601 format. Relative dates
  such as "2 minutes ago" must be converted to ISO 8601.
- "tags" is an array of strings with the item's tags: 2 to 3 recommended, at most 5.
  If the page has none, generate a few from the item title.
Reply with the JSON document only. Output format example:
{
    "version": "https://jsonfeed.org/version/1.1",
    "title": "My Example Feed",
    "home_page_url": "https://example.org/",
    "feed_url": "https://example.org/feed",
    "description": "A description of an example feed.",
    "favicon": "https://example.org/favicon.ico",
    "items": [
        {
            "id": "1",
            "url": "https://example.org/item",
            "title": "This is a item title.",
            "image": "https://example.org/item.jpg",
            "date_published": "1991-01-01T12:00:00Z",
            "tags": ["tag1", "tag2"]
        }
    ]
}"""
