from flask import Blueprint, request, jsonify
from services import catalog_service
from utils import login_required, handle_exceptions

music_api = Blueprint('music_api', __name__)

@music_api.route('/music/search', methods=['GET'])
@login_required
@handle_exceptions
def search_music():
    """Look up records in the Discogs catalog for review forms"""
    query = request.args.get('q', '').strip()
    kind = request.args.get('type', 'release')
    page = request.args.get('page', 1, type=int)

    results = catalog_service.search(query, kind=kind, page=page)

    return jsonify({
        'results': results,
        'query': query,
        'page': page,
        'count': len(results)
    })
