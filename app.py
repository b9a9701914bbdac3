#!/usr/bin/env python3
# Torque - image slideshow widgets backed by a file-serving helper process

import multiprocessing

from apscheduler.schedulers.background import BackgroundScheduler
from flask import Flask, jsonify, render_template

from config import load_settings, load_widget_configs
from helper import run_helper
from logger_config import get_logger, setup_logger
from messages import Channel
from widget import TorqueWidget, WidgetHost

logger = get_logger('app')


def create_app(host, scheduler=None):
    """Flask surface showing what each widget last rendered."""
    app = Flask(__name__)

    def _widget_or_404(client_id):
        widget = host.get(client_id)
        if widget is None:
            return None, (jsonify({'error': f'Unknown widget {client_id}'}), 404)
        return widget, None

    @app.route('/')
    def index():
        return render_template('index.html', widgets=[w.status() for w in host.widgets.values()])

    @app.route('/api/widgets')
    def api_widgets():
        return jsonify([w.status() for w in host.widgets.values()])

    @app.route('/api/widgets/<client_id>')
    def api_widget(client_id):
        widget, error = _widget_or_404(client_id)
        if error:
            return error
        return jsonify(widget.status())

    @app.route('/api/widgets/<client_id>/suspend', methods=['POST'])
    def api_suspend(client_id):
        widget, error = _widget_or_404(client_id)
        if error:
            return error
        widget.suspend()
        return jsonify({'success': True, 'running': widget.running})

    @app.route('/api/widgets/<client_id>/resume', methods=['POST'])
    def api_resume(client_id):
        widget, error = _widget_or_404(client_id)
        if error:
            return error
        widget.resume()
        return jsonify({'success': True, 'running': widget.running})

    @app.route('/api/widgets/<client_id>/next', methods=['POST'])
    def api_next(client_id):
        """Skip to next image without waiting for the refresh interval"""
        widget, error = _widget_or_404(client_id)
        if error:
            return error
        if not widget.running:
            return jsonify({'error': 'Widget not running'}), 400
        widget.on_heartbeat(immediate=True)
        return jsonify({'success': True, 'message': 'Requested next image'})

    @app.route('/api/scheduler/jobs')
    def api_scheduler_jobs():
        """Get list of heartbeat jobs"""
        jobs = []
        if scheduler is not None:
            for job in scheduler.get_jobs():
                jobs.append({
                    'id': job.id,
                    'name': job.name,
                    'next_run': str(job.next_run_time) if job.next_run_time else None,
                    'trigger': str(job.trigger)
                })
        return jsonify({'jobs': jobs})

    return app


def main():
    settings = load_settings()
    setup_logger('torque', log_dir=settings.log_dir, level=settings.log_level)
    widget_configs = load_widget_configs(settings.config_file)

    request_queue = multiprocessing.Queue()
    event_queue = multiprocessing.Queue()
    helper = multiprocessing.Process(
        target=run_helper,
        args=(request_queue, event_queue, settings.log_dir, settings.log_level),
        name='torque-helper',
        daemon=True,
    )
    helper.start()

    requests = Channel(request_queue, name='requests')
    events = Channel(event_queue, name='events')

    scheduler = BackgroundScheduler()
    scheduler.start()

    host = WidgetHost(events)
    for client_id, config in widget_configs:
        host.add(TorqueWidget(client_id, config, requests.send, scheduler))
    host.start()

    app = create_app(host, scheduler)
    try:
        app.run(host=settings.host, port=settings.port, debug=False, use_reloader=False)
    finally:
        logger.info("Shutting down")
        requests.close()
        helper.join(timeout=5)
        # The helper announces NODE_HELPER_STOP on exit; let the widgets see it
        events.close()
        host.join(timeout=5)
        scheduler.shutdown(wait=False)


if __name__ == '__main__':
    main()
