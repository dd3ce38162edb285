"""
Workers package - Celery app, named queues, tasks and Beat schedule.

Import `app.workers.celery_app` to get the application; this package
module stays import-free so services can use `app.workers.queue` without
pulling in the task modules.
"""
