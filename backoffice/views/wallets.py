"""
Wallet views.

Every wallet belongs to exactly one patient, so wallets are addressed by
patient id.  Funds movements return the previous and new balance taken
from the ledger row written with them.
"""
from __future__ import annotations

from rest_framework.decorators import api_view
from rest_framework.response import Response

from ..models import Transaction
from ..serializers.wallet import AddFundsSerializer, PaymentSerializer, TransactionHistoryQuerySerializer
from ..services import wallets as wallet_service
from .common import money


def serialize_transaction(t: Transaction) -> dict:
    return {
        'id': str(t.id),
        'walletId': str(t.wallet_id),
        'type': t.type,
        'amount': money(t.amount),
        'description': t.description,
        'referenceId': str(t.reference_id) if t.reference_id else None,
        'balanceBefore': money(t.balance_before),
        'balanceAfter': money(t.balance_after),
        'createdAt': t.created_at.isoformat() if t.created_at else None,
    }


@api_view(['GET'])
def wallet_balance(request, patient_id):
    wallet = wallet_service.get_balance(patient_id)
    return Response({'ok': True, 'data': {
        'walletId': str(wallet.id),
        'patientId': str(wallet.patient_id),
        'balance': money(wallet.balance),
        'patient': {'id': str(wallet.patient.id), 'name': wallet.patient.name, 'email': wallet.patient.email},
    }})


@api_view(['POST'])
def add_funds(request, patient_id):
    data = AddFundsSerializer(data=request.data)
    data.is_valid(raise_exception=True)
    txn = wallet_service.add_funds(patient_id, data.validated_data['amount'])
    return Response({'ok': True, 'data': {
        'walletId': str(txn.wallet_id),
        'patientId': str(patient_id),
        'transactionId': str(txn.id),
        'amountAdded': money(txn.amount),
        'previousBalance': money(txn.balance_before),
        'newBalance': money(txn.balance_after),
    }})


@api_view(['POST'])
def payment(request, patient_id):
    data = PaymentSerializer(data=request.data)
    data.is_valid(raise_exception=True)
    v = data.validated_data
    txn = wallet_service.charge(patient_id, v['amount'], v['description'], v.get('referenceId'))
    return Response({'ok': True, 'data': {
        'walletId': str(txn.wallet_id),
        'patientId': str(patient_id),
        'transactionId': str(txn.id),
        'amountPaid': money(txn.amount),
        'description': txn.description,
        'referenceId': str(txn.reference_id) if txn.reference_id else None,
        'previousBalance': money(txn.balance_before),
        'newBalance': money(txn.balance_after),
    }})


@api_view(['GET'])
def transactions(request, patient_id):
    q = TransactionHistoryQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    v = q.validated_data
    wallet, page = wallet_service.get_history(patient_id, type=v.get('type'), page=v['page'], limit=v['limit'])
    return Response({
        'ok': True,
        'data': {
            'walletId': str(wallet.id),
            'currentBalance': money(wallet.balance),
            'transactions': [serialize_transaction(t) for t in page.items],
        },
        'pagination': page.meta(),
    })


@api_view(['GET'])
def summary(request, patient_id):
    s = wallet_service.get_summary(patient_id)
    wallet = s['wallet']
    return Response({'ok': True, 'data': {
        'walletId': str(wallet.id),
        'patientId': str(wallet.patient_id),
        'currentBalance': money(wallet.balance),
        'totalCredits': money(s['total_credits']),
        'totalDebits': money(s['total_debits']),
        'totalTransactions': s['total_transactions'],
        'recentTransactions': [serialize_transaction(t) for t in s['recent_transactions']],
    }})
