"""Credential-hiding relay for the Sheets values API.

Browsers and other clients call the relay with a spreadsheet id; the relay
adds the server-held API key, forwards the request to Google and returns the
upstream JSON unchanged. Errors come back as ``{"error": "..."}`` with the
upstream status code (or 500).
"""

from typing import Any, Optional, Tuple
from urllib.parse import quote

import httpx
from flask import Flask, jsonify, request
from loguru import logger

from schedule_viewer.config.settings import AppSettings, settings as default_settings

SHEETS_API_BASE_URL = "https://sheets.googleapis.com/v4/spreadsheets"
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


class RelayError(Exception):
    """An error to be returned to the client as an error envelope."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _error(message: str, status_code: int):
    return jsonify({"error": message}), status_code


def _upstream_message(body: Any, fallback: str) -> str:
    if isinstance(body, dict) and body.get("error"):
        error = body["error"]
        if isinstance(error, dict):
            return error.get("message") or fallback
        return str(error)
    return fallback


def create_app(
    app_settings: Optional[AppSettings] = None, client: Optional[httpx.Client] = None
) -> Flask:
    """Builds the relay Flask app.

    Args:
        app_settings: Settings holding the API key; module settings when omitted.
        client: HTTP client used for upstream calls (injectable for tests).
    """
    cfg = app_settings or default_settings
    http = client or httpx.Client(timeout=httpx.Timeout(cfg.request_timeout))
    app = Flask(__name__)

    def fetch_upstream(url: str, api_key: str) -> Tuple[int, Any]:
        try:
            response = http.get(url, params={"key": api_key})
        except httpx.RequestError as e:
            logger.error(f"Upstream request failed: {e}")
            raise RelayError(f"Upstream request failed: {e}", 502) from e
        try:
            body = response.json()
        except ValueError:
            body = None
        if response.status_code == 200 and body is None:
            logger.error(f"Upstream answered 200 without a JSON body for {url}")
            raise RelayError("Invalid JSON in upstream response", 502)
        return response.status_code, body

    def first_tab_name(sheet_id: str, api_key: str) -> str:
        status, metadata = fetch_upstream(f"{SHEETS_API_BASE_URL}/{sheet_id}", api_key)
        if status != 200:
            raise RelayError(
                _upstream_message(metadata, "Failed to fetch sheet metadata"), 500
            )
        sheets = (metadata or {}).get("sheets") or []
        if not sheets:
            raise RelayError("No sheets found in spreadsheet", 500)
        return sheets[0]["properties"]["title"]

    @app.after_request
    def add_cors_headers(response):
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.route("/", methods=ALL_METHODS)
    @app.route("/api-proxy", methods=ALL_METHODS)
    def proxy():
        if request.method != "GET":
            return _error("Method not allowed", 405)

        api_key = cfg.google_sheets_api_key
        if not api_key:
            logger.error("Relay called but GOOGLE_SHEETS_API_KEY is not configured.")
            return _error("API key not configured", 500)

        sheet_id = request.args.get("sheetId")
        if not sheet_id:
            return _error("sheetId parameter required", 400)

        value_range = request.args.get("range")
        sheet_name = request.args.get("sheetName")
        action = request.args.get("action")

        try:
            if action == "metadata":
                logger.info(f"Relaying metadata request for {sheet_id}")
                status, body = fetch_upstream(
                    f"{SHEETS_API_BASE_URL}/{sheet_id}", api_key
                )
                if status != 200:
                    return _error(
                        _upstream_message(body, "Failed to fetch sheet metadata"), status
                    )
                return jsonify(body), 200

            if value_range and "!" in value_range:
                # Range already names its tab, e.g. "EmceePRT!A:ZZ"
                full_range = value_range
            else:
                tab = sheet_name or first_tab_name(sheet_id, api_key)
                full_range = f"{tab}!{value_range or cfg.value_range}"

            logger.info(f"Relaying values request for {sheet_id} range '{full_range}'")
            status, body = fetch_upstream(
                f"{SHEETS_API_BASE_URL}/{sheet_id}/values/{quote(full_range, safe='')}",
                api_key,
            )
            if status != 200:
                return _error(
                    _upstream_message(body, "Failed to fetch sheet data"), status
                )
            return jsonify(body), 200

        except RelayError as e:
            return _error(e.message, e.status_code)
        except Exception as e:
            logger.exception(f"Unexpected relay error: {e}")
            return _error(str(e) or "Internal server error", 500)

    return app


def main() -> None:
    from schedule_viewer.logging.setup import setup_logging

    setup_logging()
    app = create_app()
    logger.info(
        f"Starting relay on {default_settings.relay_host}:{default_settings.relay_port}"
    )
    app.run(host=default_settings.relay_host, port=default_settings.relay_port)


if __name__ == "__main__":
    main()
