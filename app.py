"""Flask app exposing the entity store operations over JSON."""

import re
from flask import Flask, request, jsonify, Response, current_app
from entstore import EntityStore, Entity, DB_CONFIG
from entstore.errors import (
    StoreError, EmptyQueryError, NoCandidateError, NotConfiguredError, TransportError, ConfigError
)
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)


def get_store() -> EntityStore:
    """Store owned by the app; created on first use from DB_CONFIG."""
    store = current_app.extensions.get('entstore')
    if store is None:
        store = EntityStore(DB_CONFIG['conn_str'], options=DB_CONFIG)
        current_app.extensions['entstore'] = store
    return store


def decode_query(q: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """JSON query descriptor -> store descriptor; {"regex": ..., "flags": "i"} becomes a pattern."""
    out = {}
    for k, v in (q or {}).items():
        if isinstance(v, dict) and 'regex' in v:
            flags = re.IGNORECASE if 'i' in v.get('flags', '') else 0
            v = re.compile(v['regex'], flags)
        out[k] = v
    return out


def entity_from(name: str, payload: Dict[str, Any], key: str = 'ent') -> Entity:
    return Entity(name, payload.get('base'), payload.get(key) or {})


def create_app(store: Optional[EntityStore] = None) -> Flask:
    app = Flask(__name__)
    if store is not None:
        app.extensions['entstore'] = store

    @app.errorhandler(ValueError)
    @app.errorhandler(EmptyQueryError)
    @app.errorhandler(ConfigError)
    def handle_value_error(e: Exception) -> Response:
        """Handle bad input with 400 response."""
        return jsonify({'error': str(e)}), 400

    @app.errorhandler(NoCandidateError)
    def handle_no_candidate(e: NoCandidateError) -> Response:
        return jsonify({'error': str(e), 'critical': e.critical}), 404

    @app.errorhandler(TransportError)
    @app.errorhandler(NotConfiguredError)
    def handle_unavailable(e: StoreError) -> Response:
        """Handle database trouble with 503 response."""
        logger.error(f'Store unavailable: {e}')
        return jsonify({'error': str(e), 'code': getattr(e, 'code', None)}), 503

    @app.route('/entity/<name>/save', methods=['POST'])
    def save(name: str):
        """Insert or update an entity."""
        payload = request.get_json() or {}
        ent = get_store().save(entity_from(name, payload))
        return jsonify(dict(ent))

    @app.route('/entity/<name>/load', methods=['POST'])
    def load(name: str):
        """Load the first entity matching q."""
        payload = request.get_json() or {}
        ent = get_store().load(entity_from(name, payload, 'qent'), decode_query(payload.get('q')))
        return jsonify(dict(ent) if ent is not None else None)

    @app.route('/entity/<name>/list', methods=['POST'])
    def list_entities(name: str):
        """List entities matching q, or return the statement when execute is false."""
        payload = request.get_json() or {}
        store = get_store()
        qent = entity_from(name, payload, 'qent')
        q = decode_query(payload.get('q'))
        if not payload.get('execute', True):
            stm = store.builder.select(qent, q)
            return jsonify({'sql': stm.text, 'params': {k: str(v) for k, v in stm.values.items()}})
        return jsonify([dict(e) for e in store.list(qent, q)])

    @app.route('/entity/<name>/remove', methods=['POST'])
    def remove(name: str):
        """Remove by id, all matches (all$) or the first match."""
        payload = request.get_json() or {}
        count = get_store().remove(entity_from(name, payload, 'qent'), decode_query(payload.get('q')))
        return jsonify({'deleted': count})

    return app


if __name__ == '__main__':
    logging.basicConfig(level=logging.DEBUG if DB_CONFIG['debug'] else logging.INFO)
    create_app().run(debug=DB_CONFIG['debug'])
