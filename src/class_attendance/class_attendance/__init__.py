"""Class attendance session engine.

Feature modules (classes, enrollment, logs, attendance) each expose a
repository Protocol, a MySQL implementation and, where needed, a service and
a thin Flask controller.
"""
