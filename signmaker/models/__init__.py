"""
Database Models Package

FLOW OVERVIEW
- Centralizes SQLAlchemy DB instance and model imports for convenient usage.
- Exposes: db plus every table the API reads or writes.
"""

from .database import db
from .user import User, Conversation, Message, Feedback, UserContext
from .company import Company, UserRole, ExpertKnowledge, KnowledgeNote
from .leads import Referral, B2BInquiry, Partner, SignExpertsReferral, QuoteSubmission
from .admin import AdminSession, Setting, Alert, InsightsReport
from .content import (
    GlossaryTerm, GlossaryInteraction, ImageSearchCache,
    SuggestedFollowup, FollowupClick, KnowledgeGap, UsageStat
)

__all__ = [
    'db',
    'User',
    'Conversation',
    'Message',
    'Feedback',
    'UserContext',
    'Company',
    'UserRole',
    'ExpertKnowledge',
    'KnowledgeNote',
    'Referral',
    'B2BInquiry',
    'Partner',
    'SignExpertsReferral',
    'QuoteSubmission',
    'AdminSession',
    'Setting',
    'Alert',
    'InsightsReport',
    'GlossaryTerm',
    'GlossaryInteraction',
    'ImageSearchCache',
    'SuggestedFollowup',
    'FollowupClick',
    'KnowledgeGap',
    'UsageStat',
]
