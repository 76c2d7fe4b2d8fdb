"""
Reminder subsystem.

Components:
- notification_models.py: platform-neutral notification types (content, triggers, permission)
- reminder_scheduler.py: turns a Task's reminder intent into platform notifications
- local_platform.py: in-process notification platform + dispatcher loop
"""
