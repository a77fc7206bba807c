"""
Static document category tables, one per workflow step.

A category is a named slot that accepts up to ``max_files`` files. Required
categories must hold at least one file before the step's checklist is
complete.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class CategorySpec:
    key: str
    label: str
    required: bool
    max_files: int


def _spec(key, label, required, max_files):
    return CategorySpec(key=key, label=label, required=required, max_files=max_files)


DOCUMENT_CATEGORIES = {
    1: (
        _spec('electricity_bill', 'Electricity Bill', True, 3),
        _spec('aadhar', 'Aadhar Card', True, 2),
        _spec('pan_card', 'PAN Card', True, 2),
        _spec('bank_passbook', 'Bank Passbook', True, 3),
        _spec('feasibility_report', 'Feasibility Report', True, 2),
        _spec('sanctioned_load_document', 'Sanctioned Load Document', True, 2),
        _spec('loan_application_form', 'Loan Application Form', False, 2),
        _spec('loan_request_letter', 'Loan Request Letter', False, 2),
        _spec('property_ownership_proof', 'Property Ownership Proof', True, 3),
        _spec('passport_size_photo', 'Passport Size Photo', True, 2),
        _spec('quotation', 'Quotation', False, 1),
        _spec('other_docs', 'Other Documents', False, 10),
    ),
    2: (
        _spec('loan_applications', 'Loan Applications', True, 5),
        _spec('income_proofs', 'Income Proofs', True, 5),
        _spec('collateral_documents', 'Collateral Documents', True, 5),
        _spec('bank_statements', 'Bank Statements', True, 5),
        _spec('other_loan_docs', 'Other Loan Documents', False, 10),
    ),
    3: (
        _spec('modal_agreement', 'Modal Agreement', True, 3),
        _spec('net_metering_agreement', 'Net Metering Agreement', True, 3),
        _spec('meter_payment_receipt', 'Meter Payment Receipt', True, 3),
        _spec('work_completion_report', 'Work Completion Report', True, 3),
        _spec('joint_inspection_report', 'Joint Inspection Report', True, 3),
        _spec('commissioning_certificate', 'Commissioning Certificate', True, 3),
        _spec('dcr_self_undertaking', 'DCR Self Undertaking', True, 3),
        _spec('almm_declaration', 'ALMM Declaration', True, 3),
        _spec('other_agreements', 'Other Agreements', False, 10),
    ),
    4: (
        _spec('dual_sign_files', 'Dual Sign Files', True, 5),
        _spec('wcr_documents', 'WCR Documents', True, 3),
        _spec('joint_inspection_documents', 'Joint Inspection Documents', True, 3),
        _spec('commissioning_undertaking_documents', 'Commissioning Undertaking Documents', True, 3),
        _spec('almm_certificate_documents', 'ALMM Certificate Documents', True, 3),
        _spec('dcr_certificate_documents', 'DCR Certificate Documents', False, 10),
        _spec('agreement_files', 'Agreement Files', True, 5),
    ),
    5: (
        _spec('bank_disbursement_letter', 'Bank Disbursement Letter', False, 5),
        _spec('margin_receipt', 'Margin Receipt', False, 5),
    ),
}

# Installation progress photos, step 3. Capacity comes from settings.
GPS_STEP_NUMBER = 3
GPS_CATEGORIES = {
    'material_dispatch': 'Material Dispatch',
    'structure_assembly': 'Structure Assembly',
    'panel_installation': 'Panel Installation',
    'invertor_connection': 'Invertor Connection',
    'net_metering_agreement': 'Net Metering Agreement',
    'plant_started': 'Plant Started',
}


def get_categories(step_number: int) -> tuple:
    """Return the category table of a step; empty for unknown steps."""
    return DOCUMENT_CATEGORIES.get(step_number, ())


def get_category(step_number: int, key: str) -> CategorySpec:
    for spec in get_categories(step_number):
        if spec.key == key:
            return spec
    raise KeyError(f"{step_number}/{key}")
