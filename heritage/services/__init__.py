# Services package init
"""
Heritage Numérique Backend — Services Layer
============================================

What:  Business logic layer sitting between routes (HTTP) and database (persistence).
How:   Every service method takes the request's AsyncSession as its first
       argument, checks permissions, applies the business rules and only
       flushes; the session dependency commits once the route returns.

Service Inventory:
    - permissions:           Family role gates shared by every family-scoped service
    - AuthService:           Registration, login, login-with-code, super admin bootstrap
    - UserService:           Profile updates and user lookups
    - FamilyService:         Families, memberships, roles, dashboard, contributions
    - InvitationService:     Invitation codes, redemption, expiry sweep
    - CategoryService:       Content categories (super admin)
    - ContentService:        Contents, media creation, publication workflow, public catalogue
    - GenealogyService:      Family tree, hierarchy layout, relatives
    - QuizService:           Quizzes, questions, propositions, scoring
    - NotificationService:   Persisted notifications and their dispatch by channel
    - EmailService:          Invitation codes mailed to invitees over SMTP
    - DashboardService:      Personal counters and platform statistics
    - TranslationService:    fr / en through an HTTP provider, bm from a glossary
    - FileService:           Upload validation, storage, cleanup and download paths

Services import each other only through their module-level singletons.
"""
