"""Student attendance service.

Organized by feature modules (students, classes, enrollment, attendance,
reports) with a thin Flask controller layer over service/repository layers.
"""
