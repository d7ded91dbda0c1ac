from flask import Blueprint, current_app, jsonify
from services.avatar_storage import AvatarStorageError, avatar_file_details, get_avatar_storage
from routes.auth import get_form

avatars_bp = Blueprint('avatars', __name__)


@avatars_bp.route('/presign', methods=['POST'])
def presign_upload():
    """Presigned URL for uploading a new avatar straight to storage"""
    content_type = get_form().get('contentType')

    if not isinstance(content_type, str) or not content_type:
        return jsonify({'success': False, 'error': 'contentType is required'}), 400

    if not content_type.startswith('image/'):
        return jsonify({'success': False, 'error': 'Only image uploads are allowed'}), 400

    # object names are always server-generated
    file_name, content_type = avatar_file_details(content_type)
    storage = get_avatar_storage()

    try:
        url = storage.get_presigned_upload_url(file_name, content_type)
    except AvatarStorageError as e:
        current_app.logger.error(f'Presigned URL error: {e}')
        return jsonify({'success': False, 'error': 'Failed to generate upload URL'}), 500

    key = storage.key_for(file_name)
    return jsonify({
        'success': True,
        'key': key,
        'url': url,
        'public_url': storage.public_url(key),
    })
