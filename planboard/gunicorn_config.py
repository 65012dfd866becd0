import logging
import os

# gunicorn -c planboard/gunicorn_config.py "planboard.run:create_app_wsgi()"
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:5000")
worker_class = "sync"  # async_route держит свой цикл событий в каждом потоке
workers = int(os.getenv("GUNICORN_WORKERS", "2"))
threads = 1
max_requests = 1000
max_requests_jitter = 50  # чтобы воркеры не перезапускались одновременно
timeout = 120  # проход по уведомлениям может занимать время
graceful_timeout = 30
keepalive = 65

errorlog = "-"
accesslog = "-"
loglevel = os.getenv("LOGGER_LEVEL", "info").lower()


def on_starting(server):
    logging.info("Запуск Gunicorn сервера")


def when_ready(server):
    logging.info(f"Сервер готов к обработке запросов с {server.num_workers} воркерами")


def worker_int(worker):
    logging.info(f"Воркер {worker.pid} остановлен")
