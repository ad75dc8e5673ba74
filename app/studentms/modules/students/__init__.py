"""
Student records module.

- List view composes search (name/department substring), exact department
  filter and a name/gpa sort.
- Create/update validate form input, then check roll number and email
  uniqueness before writing.
- Each handler commits at most one row change.
"""
