#!/usr/bin/env python3
"""
Flask web server for the PLM to IFS migration.
Accepts an uploaded PLM export, runs the pipeline and serves the generated files.
"""

import re
import time
import uuid
from dataclasses import replace
from pathlib import Path
from typing import Optional

from flask import Flask, request, jsonify, send_from_directory
from flask_cors import CORS

from .core.config import PipelineConfig, load_config
from .core.exceptions import MigrationError, ValidationError
from .core.logging_config import (
    setup_logging, get_logger, log_operation_start, log_operation_end, log_validation_error,
)
from .pipeline import MigrationPipeline
from .utils.spreadsheet_loader import read_rows_from_bytes

logger = get_logger(__name__)

RUN_ID_PATTERN = re.compile(r'[0-9a-f]{32}')


def create_app(config: Optional[PipelineConfig] = None) -> Flask:
    app = Flask(__name__)
    CORS(app)

    pipeline_config = config or load_config()
    app.config['PIPELINE_CONFIG'] = pipeline_config
    app.config['MAX_CONTENT_LENGTH'] = pipeline_config.max_file_size

    @app.errorhandler(ValidationError)
    def handle_validation_error(error):
        log_validation_error(error, field=getattr(error, 'field', None), value=getattr(error, 'value', None))
        return jsonify({
            'error': str(error),
            'error_type': 'validation_error',
            'field': getattr(error, 'field', None),
        }), 400

    @app.errorhandler(MigrationError)
    def handle_migration_error(error):
        logger.error(f"Migration error: {error}", extra={'error_type': type(error).__name__})
        return jsonify({'error': str(error), 'error_type': 'migration_error'}), 500

    @app.after_request
    def add_security_headers(response):
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        return response

    @app.route('/api/health', methods=['GET'])
    def health():
        return jsonify({'status': 'ok'})

    @app.route('/api/migration', methods=['POST'])
    def run_migration():
        """Run the migration on the uploaded `file` and return the summary."""
        log_operation_start("upload_migration")
        start_time = time.time()

        upload = request.files.get('file')
        if upload is None or not upload.filename:
            raise ValidationError("No file uploaded", field="file")

        rows = read_rows_from_bytes(upload.read(), upload.filename, encoding=pipeline_config.encoding,
                                    delimiter=pipeline_config.csv_delimiter)

        # One output directory per upload
        run_id = uuid.uuid4().hex
        run_config = replace(pipeline_config, output_directory=Path(pipeline_config.output_directory) / run_id)
        summary = MigrationPipeline(run_config).run(rows=rows)

        duration = time.time() - start_time
        log_operation_end("upload_migration", success=summary.success, duration=duration,
                          filename=upload.filename, modules=len(summary.results), run_id=run_id)

        payload = summary.to_dict()
        payload['run_id'] = run_id
        payload['files'] = [Path(r.output_path).name for r in summary.results if r.success]
        if summary.archive_path:
            payload['archive'] = Path(summary.archive_path).name
        return jsonify(payload)

    @app.route('/api/migration/download/<run_id>/<filename>', methods=['GET'])
    def download(run_id: str, filename: str):
        """Serve a file generated by one upload run."""
        if not RUN_ID_PATTERN.fullmatch(run_id):
            raise ValidationError("Invalid run id", field="run_id", value=run_id)
        if Path(filename).name != filename or filename.startswith('.'):
            raise ValidationError("Invalid file name", field="filename", value=filename)

        run_dir = (Path(pipeline_config.output_directory) / run_id).resolve()
        if not (run_dir / filename).is_file():
            return jsonify({'error': f"File not found: {run_id}/{filename}"}), 404
        return send_from_directory(run_dir, filename, as_attachment=True)

    return app


def main() -> None:
    setup_logging(level='INFO', include_console=True)
    app = create_app()
    logger.info("Starting migration web server on http://localhost:5000")
    app.run(debug=False, port=5000)


if __name__ == '__main__':
    main()
