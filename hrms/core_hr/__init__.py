"""Core HR module — Employee, Department, Designation reference models."""

from hrms.core_hr.models import Department, Designation, Employee

__all__ = ["Employee", "Department", "Designation"]
