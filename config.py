"""Configuration constants for the HTTP response model."""

FRAMEWORK_NAME: str = "Vapor"
FRAMEWORK_VERSION: str = "0.1.0"
SERVER_NAME: str = f"{FRAMEWORK_NAME} {FRAMEWORK_VERSION}"
JSON_INDENT: int = 2
HTML_TEMPLATE: str = '<html><meta charset="UTF-8"><body>{fragment}</body></html>'
