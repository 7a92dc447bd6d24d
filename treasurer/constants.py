ROLE_ADMIN = "admin"
ROLE_FINANCE_DIRECTOR = "diretor_financeiro"
ROLE_VIEWER = "viewer"

ROLES = (ROLE_ADMIN, ROLE_FINANCE_DIRECTOR, ROLE_VIEWER)

# Roles allowed to mutate financial records.
PRIVILEGED_ROLES = (ROLE_ADMIN, ROLE_FINANCE_DIRECTOR)

CURRENT_BALANCE_KEY = "current_balance"

DEFAULT_SETTINGS = {
    "org_name": "Tesoureiro Assistente",
    "org_tagline": "Controle completo de membros, pagamentos, metas e eventos do clã.",
    "default_payment_amount": "100",
    "document_footer": "Guarde este recibo para referência. Em caso de dúvidas, procure o tesoureiro responsável.",
    "payment_due_day": "",
    "pix_key": "",
    "pix_receiver": "",
    "dashboard_note": "",
    "disclaimer_text": "Sistema para uso interno. Os dados são confidenciais e de responsabilidade da organização.",
}

ENTRY_TYPE_PAYMENT = "pagamento"
ENTRY_TYPE_EXPENSE = "despesa"
ENTRY_TYPE_EVENT = "evento"
ENTRY_TYPES = (ENTRY_TYPE_PAYMENT, ENTRY_TYPE_EXPENSE, ENTRY_TYPE_EVENT)

ENTRY_TYPE_LABELS = {
    ENTRY_TYPE_PAYMENT: "Entrada",
    ENTRY_TYPE_EXPENSE: "Saída",
    ENTRY_TYPE_EVENT: "Evento",
}

MONTH_NAMES = [
    "",
    "Janeiro",
    "Fevereiro",
    "Março",
    "Abril",
    "Maio",
    "Junho",
    "Julho",
    "Agosto",
    "Setembro",
    "Outubro",
    "Novembro",
    "Dezembro",
]

REGISTRATION_NUMBER_MAX_LENGTH = 50
