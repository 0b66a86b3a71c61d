"""Closed sets of string tags shared by models and schemas."""
from enum import Enum


class RoleName(str, Enum):
    ADMIN = "admin"
    HIRING_MANAGER = "hiringManager"
    INTERVIEWER = "interviewer"


class UserStatus(str, Enum):
    UNVERIFIED = "unverified"
    VERIFIED = "verified"
    SUSPENDED = "suspended"


class TeamStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    TERMINATED = "terminated"


class TeamRoleName(str, Enum):
    LEAD = "lead"
    MEMBER = "member"
    CONTRIBUTOR = "contributor"


class WorkType(str, Enum):
    HYBRID = "hybrid"
    ONSITE = "onsite"
    REMOTE = "remote"


class ContractType(str, Enum):
    FULL_TIME = "fullTime"
    INTERNSHIP = "internship"
    PART_TIME = "partTime"
    FREELANCE = "freelance"
    TEMPORARY = "temporary"


class PipelineStatus(str, Enum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"


class StageStatus(str, Enum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    TERMINATED = "terminated"


class CandidateStatus(str, Enum):
    APPLIED = "applied"
    SHORTLISTED = "shortlisted"
    INTERVIEWED = "interviewed"
    OFFERED = "offered"
    REJECTED = "rejected"


class ApplicationSource(str, Enum):
    REFERRAL = "referral"
    JOB_BOARD = "jobBoard"
    DIRECT = "direct"
    AGENCY = "agency"


class InterviewStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Permission(str, Enum):
    VIEW_CANDIDATES = "view_candidates"
    EDIT_JOBS = "edit_jobs"
    MANAGE_TEAMS = "manage_teams"
    VIEW_REPORTS = "view_reports"
    ASSIGN_INTERVIEWS = "assign_interviews"


class JobStatus(str, Enum):
    DRAFT = "draft"
    OPEN = "open"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class Action(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    VIEW = "view"
    ASSIGN = "assign"


class TargetType(str, Enum):
    USER = "user"
    CANDIDATE = "candidate"
    JOB = "job"
    STAGE = "stage"
    PIPELINE = "pipeline"
    INTERVIEW = "interview"
    CHECKLIST = "checklist"
    NOTE = "note"
    ATTACHMENT = "attachment"
    TEAM = "team"
    DEPARTMENT = "department"


class NoteType(str, Enum):
    GENERAL = "general"
    INTERVIEW = "interview"
    FEEDBACK = "feedback"
