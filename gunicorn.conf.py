import os

bind = f"0.0.0.0:{os.getenv('PORT', 8000)}"
# The submission store lives in process memory, so one worker owns the data files
workers = 1
worker_class = "uvicorn.workers.UvicornWorker"
worker_connections = 1000
preload_app = True
