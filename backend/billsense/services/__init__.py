# Services package init
"""
BillSense AI Backend — Services Layer
=====================================

What:  Business logic layer sitting between routes (HTTP) and database (persistence).
Why:   Routes handle HTTP, services handle business rules.

Service Inventory:
    - LLMService (abstract): Interface for text-generation providers
    - GeminiService: Concrete implementation using Google Gemini
    - AuthService: Registration, login, profile
    - InvoiceService: Invoice CRUD scoped to the caller
    - AIService: Invoice parsing, reminders, dashboard insights
"""
