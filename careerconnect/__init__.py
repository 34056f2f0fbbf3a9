"""
CareerConnect
A multi-role recruitment and admissions platform.

Architecture:
- MongoDB: every document (users, profiles, jobs, applications, admissions)
- GridFS / Cloudinary: uploaded files (logos, resumes, transcripts)
- JWT: token sessions for students, institutions, companies and admins
"""

__version__ = "1.0.0"
