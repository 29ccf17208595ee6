import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from flask import Flask, Response, current_app, jsonify, request, send_from_directory
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
from werkzeug.security import safe_join

from textsaver.completion import CompletionClient
from textsaver.config import Config, load_config
from textsaver.errors import (
    CompletionError,
    ConfigurationError,
    StorageError,
    TextSaverError,
    ValidationError,
)
from textsaver.store import HISTORY_LIMIT, Store

SUGGEST_MAX_TOKENS = 100
MAX_WORDS = 10

_WORD_SPLIT_RE = re.compile(r"[,\n\r\t•\-]")
_NUMBERING_RE = re.compile(r"^\d+\.", re.ASCII)

NOT_CONFIGURED_MESSAGE = "OpenAI API key is not configured on the server."
SAVE_FAILED_MESSAGE = "Failed to save to database"


def suggest_prompt(text: str) -> str:
    return (
        "Given the following text, suggest 5-10 relevant words or phrases that could be used "
        "to enhance or expand upon this content. "
        "Return only the words separated by commas, no explanations:\n\n"
        f'Text: "{text}"\n\nWords:'
    )


def ask_prompt(text: str) -> str:
    return (
        "Please provide a helpful and informative response to the following request or question:\n\n"
        f'"{text}"\n\nResponse:'
    )


def parse_words(raw: str, *, limit: int = MAX_WORDS) -> List[str]:
    """
    Split model output into candidate words.

    Separators are commas, newlines, tabs, bullets and hyphens; numbered
    list markers like "1." are dropped. Order is kept and at most `limit`
    words are returned.
    """
    words: List[str] = []
    for piece in _WORD_SPLIT_RE.split(raw or ""):
        word = piece.strip()
        if not word or _NUMBERING_RE.match(word):
            continue
        words.append(word)
        if len(words) >= limit:
            break
    return words


def _require_text(body: Dict[str, Any]) -> str:
    text = body.get("text")
    if not isinstance(text, str) or not text:
        raise ValidationError("Text is required")
    return text


def _require_configured(completer: CompletionClient) -> None:
    if not completer.configured:
        raise ConfigurationError(NOT_CONFIGURED_MESSAGE)


def handle_suggest(
    body: Dict[str, Any], *, cfg: Config, store: Store, completer: CompletionClient
) -> Dict[str, Any]:
    text = _require_text(body)
    _require_configured(completer)

    try:
        raw = completer.complete(
            suggest_prompt(text),
            max_tokens=SUGGEST_MAX_TOKENS,
            temperature=cfg.openai_temperature,
            model=cfg.openai_model,
        )
    except CompletionError as exc:
        current_app.logger.error("OpenAI /suggest error: %s", exc)
        raise CompletionError(
            "Failed to generate suggestions. Please check your OpenAI API key."
        ) from exc

    words = parse_words(raw)

    try:
        suggest_id = store.insert_suggest(text, raw)
    except StorageError as exc:
        raise StorageError(SAVE_FAILED_MESSAGE) from exc

    return {
        "success": True,
        "words": words,
        "message": "Suggestion saved successfully",
        "id": suggest_id,
    }


def _suggest_id(body: Dict[str, Any]) -> Optional[int]:
    value = body.get("suggestId")
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError("'suggestId' must be an integer")
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("'suggestId' must be an integer") from None


def handle_ask(
    body: Dict[str, Any], *, cfg: Config, store: Store, completer: CompletionClient
) -> Dict[str, Any]:
    text = _require_text(body)
    _require_configured(completer)
    suggest_id = _suggest_id(body)

    try:
        answer = completer.complete(
            ask_prompt(text),
            max_tokens=cfg.openai_max_tokens,
            temperature=cfg.openai_temperature,
            model=cfg.openai_model,
        )
    except CompletionError as exc:
        current_app.logger.error("OpenAI /ask error: %s", exc)
        raise CompletionError("Failed to get AI response. Please check your OpenAI API key.") from exc

    try:
        store.insert_ask(text, answer)
    except StorageError as exc:
        raise StorageError(SAVE_FAILED_MESSAGE) from exc

    selected = body.get("selectedWords")
    if isinstance(selected, list) and selected:
        joined = ", ".join(str(w) for w in selected)
        if not store.update_latest_suggest_selection(joined, suggest_id=suggest_id):
            current_app.logger.warning("selected_words not recorded for suggestion %s", suggest_id or "latest")

    return {"success": True, "response": answer, "message": "Response saved successfully"}


def handle_history(*, store: Store) -> Dict[str, Any]:
    asks = store.recent_asks(HISTORY_LIMIT)
    suggests = store.recent_suggests(HISTORY_LIMIT)
    return {"success": True, "history": {"asks": asks, "suggests": suggests}}


def _json_body() -> Dict[str, Any]:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def create_app(
    config: Optional[Config] = None,
    *,
    store: Optional[Store] = None,
    completer: Optional[CompletionClient] = None,
) -> Flask:
    cfg = config or load_config()
    if store is None:
        store = Store(cfg.database_path)
        store.init_schema()
    if completer is None:
        completer = CompletionClient(
            cfg.openai_api_key,
            base_url=cfg.openai_base_url,
            timeout=cfg.openai_timeout,
        )

    # Static files are served by the catch-all route below so unknown paths
    # can fall back to index.html.
    app = Flask(__name__, static_folder=None)
    app.config["APP_CONFIG"] = cfg
    app.extensions["textsaver.store"] = store
    app.extensions["textsaver.completer"] = completer
    CORS(app, resources={r"/api/*": {"origins": "*"}})

    @app.errorhandler(TextSaverError)
    def textsaver_error(exc: TextSaverError):
        return jsonify({"success": False, "error": str(exc)}), exc.http_status

    @app.errorhandler(HTTPException)
    def http_error(exc: HTTPException):
        if request.path.startswith("/api/"):
            return jsonify({"success": False, "error": exc.name}), exc.code
        return exc

    @app.errorhandler(Exception)
    def unexpected_error(exc: Exception):
        app.logger.exception("Unhandled error on %s", request.path)
        return jsonify({"success": False, "error": "Internal server error"}), 500

    @app.get("/api/health")
    def health() -> Response:
        return jsonify({"ok": True, "db": store.is_open, "openai": completer.configured})

    @app.get("/api/history")
    def history() -> Response:
        return jsonify(handle_history(store=store))

    @app.post("/api/suggest")
    def suggest() -> Response:
        return jsonify(handle_suggest(_json_body(), cfg=cfg, store=store, completer=completer))

    @app.post("/api/ask")
    def ask() -> Response:
        return jsonify(handle_ask(_json_body(), cfg=cfg, store=store, completer=completer))

    @app.get("/")
    @app.get("/<path:path>")
    def frontend(path: str = "") -> Response:
        if path == "api" or path.startswith("api/"):
            return jsonify({"success": False, "error": "Not found"}), 404
        static_dir = Path(cfg.static_dir)
        if path:
            candidate = safe_join(str(static_dir), path)
            if candidate is not None and Path(candidate).is_file():
                return send_from_directory(str(static_dir), path)
        if not (static_dir / "index.html").is_file():
            return jsonify({"success": False, "error": f"Missing {static_dir / 'index.html'}"}), 404
        return send_from_directory(str(static_dir), "index.html")

    return app
