from flask import Flask, request, jsonify, Response
from flask_sqlalchemy import SQLAlchemy
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
import os, csv, io
from werkzeug.utils import secure_filename
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

import reports
from errors import NotFoundError, PersistenceError, ValidationError
from importer import ImportFormatError, parse_csv
from validation import (
    CENT,
    check_running_total,
    clean_budget,
    clean_goal,
    clean_progress,
    clean_transaction,
    duplicate_category_error,
    validate_date,
)

app = Flask(__name__)
db_uri = os.environ.get('FINANCE_DB_URI', 'sqlite:///finance_tracker.db')
app.config['SQLALCHEMY_DATABASE_URI'] = db_uri
app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
app.config['MAX_CONTENT_LENGTH'] = 16 * 1024 * 1024
app.logger.setLevel(os.environ.get('FINANCE_LOG_LEVEL', 'INFO').upper())

db = SQLAlchemy()
db.init_app(app)


def _money(value):
    return str(Decimal(value or 0).quantize(CENT))


####
# Models
####
class TimestampMixin:
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


class Transaction(TimestampMixin, db.Model):
    __tablename__ = 'transactions'
    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.Date, nullable=False)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    category = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(200), default='')
    transaction_type = db.Column(db.String(20), nullable=False)  # 'income' or 'expense'

    def to_dict(self):
        return {
            'id': self.id,
            'date': self.date.isoformat(),
            'amount': _money(self.amount),
            'category': self.category,
            'description': self.description,
            'type': self.transaction_type,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
        }


class Budget(TimestampMixin, db.Model):
    __tablename__ = 'budgets'
    id = db.Column(db.Integer, primary_key=True)
    category = db.Column(db.String(100), unique=True, nullable=False)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    spent = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal('0.00'))

    @property
    def remaining(self):
        return reports.remaining(self.amount, self.spent)

    @property
    def percentage_used(self):
        return reports.percentage(self.spent, self.amount)

    def to_dict(self):
        return {
            'id': self.id,
            'category': self.category,
            'amount': _money(self.amount),
            'spent': _money(self.spent),
            'remaining': _money(self.remaining),
            'percentage_used': self.percentage_used,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
        }


class Goal(TimestampMixin, db.Model):
    __tablename__ = 'goals'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    target_amount = db.Column(db.Numeric(10, 2), nullable=False)
    current_amount = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal('0.00'))
    deadline = db.Column(db.Date, nullable=True)

    @property
    def progress_percentage(self):
        return reports.percentage(self.current_amount, self.target_amount)

    @property
    def days_remaining(self):
        return reports.days_until(self.deadline)

    def add_progress(self, amount):
        self.current_amount = check_running_total(Decimal(self.current_amount or 0) + amount, 'amount')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'target_amount': _money(self.target_amount),
            'current_amount': _money(self.current_amount),
            'deadline': self.deadline.isoformat() if self.deadline else None,
            'progress_percentage': self.progress_percentage,
            'days_remaining': self.days_remaining,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
        }


####
# Helper Functions
####
@contextmanager
def unit_of_work(integrity_error=None):
    """Commit on success, roll back on any failure.

    Database errors become ``PersistenceError``; an ``IntegrityError`` is
    replaced by ``integrity_error`` when one is given.
    """
    try:
        yield db.session
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        if integrity_error is not None:
            raise integrity_error from e
        app.logger.exception("Integrity error while saving")
        raise PersistenceError(str(e.orig)) from e
    except SQLAlchemyError as e:
        db.session.rollback()
        app.logger.exception("Database error while saving")
        raise PersistenceError(str(e)) from e
    except Exception:
        db.session.rollback()
        raise


def ingest_transaction(fields):
    """Add a transaction to the session and apply it to a matching budget.

    The caller owns the unit of work, so both writes commit or roll back
    together. The budget is updated first so an overflowing total raises
    before anything is added.
    """
    tx = Transaction(**fields)
    budget = (
        Budget.query
        .filter_by(category=tx.category)
        .with_for_update()
        .first()
    )
    if reports.apply_expense(budget, tx):
        app.logger.debug("Budget %r spent is now %s", budget.category, budget.spent)
    db.session.add(tx)
    return tx


def _request_json():
    return request.get_json(silent=True)


def _validation_response(e):
    return jsonify({'errors': e.errors}), 422


def _error_response(e, status):
    return jsonify({'error': str(e)}), status


def _date_arg(name, errors):
    raw = request.args.get(name)
    if not raw:
        return None
    value, error = validate_date(raw)
    if error:
        errors[name] = [error]
    return value


####
# API: Transactions
####
@app.route('/transactions')
def list_transactions():
    try:
        txs = Transaction.query.order_by(Transaction.id).all()
        return jsonify([t.to_dict() for t in txs])
    except SQLAlchemyError as e:
        app.logger.exception("Failed to list transactions")
        return _error_response(e, 500)


@app.route('/transactions', methods=['POST'])
def create_transaction():
    try:
        fields = clean_transaction(_request_json(), today=reports.today())
        with unit_of_work():
            tx = ingest_transaction(fields)
        app.logger.info("Recorded %s of %s in %r", tx.transaction_type, tx.amount, tx.category)
        return jsonify(tx.to_dict()), 201
    except ValidationError as e:
        return _validation_response(e)
    except PersistenceError as e:
        return _error_response(e, 500)


####
# API: Budgets
####
@app.route('/budgets')
def list_budgets():
    try:
        budgets = Budget.query.order_by(Budget.id).all()
        return jsonify([b.to_dict() for b in budgets])
    except SQLAlchemyError as e:
        app.logger.exception("Failed to list budgets")
        return _error_response(e, 500)


@app.route('/budgets', methods=['POST'])
def create_budget():
    try:
        fields = clean_budget(_request_json())
        with unit_of_work(integrity_error=duplicate_category_error()):
            # The unique constraint settles races the lookup cannot see
            if Budget.query.filter_by(category=fields['category']).first():
                raise duplicate_category_error()
            budget = Budget(**fields)
            db.session.add(budget)
        app.logger.info("Created budget %r with limit %s", budget.category, budget.amount)
        return jsonify(budget.to_dict()), 201
    except ValidationError as e:
        return _validation_response(e)
    except PersistenceError as e:
        return _error_response(e, 500)


####
# API: Goals
####
@app.route('/goals')
def list_goals():
    try:
        goals = Goal.query.order_by(Goal.id).all()
        return jsonify([g.to_dict() for g in goals])
    except SQLAlchemyError as e:
        app.logger.exception("Failed to list goals")
        return _error_response(e, 500)


@app.route('/goals', methods=['POST'])
def create_goal():
    try:
        fields = clean_goal(_request_json())
        with unit_of_work():
            goal = Goal(**fields)
            db.session.add(goal)
        app.logger.info("Created goal %r targeting %s", goal.name, goal.target_amount)
        return jsonify(goal.to_dict()), 201
    except ValidationError as e:
        return _validation_response(e)
    except PersistenceError as e:
        return _error_response(e, 500)


@app.route('/goals/<int:goal_id>/progress', methods=['POST'])
def add_goal_progress(goal_id):
    try:
        amount = clean_progress(_request_json())
        with unit_of_work():
            goal = db.session.get(Goal, goal_id)
            if goal is None:
                raise NotFoundError(f"Goal {goal_id} not found")
            goal.add_progress(amount)
        app.logger.info("Added %s to goal %r", amount, goal.name)
        return jsonify(goal.to_dict())
    except ValidationError as e:
        return _validation_response(e)
    except NotFoundError as e:
        return _error_response(e, 404)
    except PersistenceError as e:
        return _error_response(e, 500)


####
# API: Reports
####
@app.route('/reports/summary')
def get_summary():
    errors = {}
    start = _date_arg('start', errors)
    end = _date_arg('end', errors)
    if errors:
        return jsonify({'errors': errors}), 422
    try:
        report = reports.summary(Transaction.query.order_by(Transaction.id).all(), start, end)
    except SQLAlchemyError as e:
        app.logger.exception("Failed to build summary")
        return _error_response(e, 500)
    return jsonify({
        'start': start.isoformat() if start else None,
        'end': end.isoformat() if end else None,
        'total_income': _money(report['total_income']),
        'total_expenses': _money(report['total_expenses']),
        'net': _money(report['net']),
        'expenses_by_category': {
            category: _money(total)
            for category, total in report['expenses_by_category'].items()
        },
    })


####
# API: Import / Export
####
@app.route('/export/csv')
def export_csv():
    try:
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(['Date', 'Type', 'Category', 'Description', 'Amount'])
        for t in Transaction.query.order_by(Transaction.id).all():
            writer.writerow([
                t.date.isoformat(),
                t.transaction_type,
                t.category,
                t.description or '',
                _money(t.amount),
            ])
    except SQLAlchemyError as e:
        app.logger.exception("Failed to export transactions")
        return _error_response(e, 500)

    return Response(
        output.getvalue(),
        mimetype='text/csv',
        headers={
            'Content-Disposition': f'attachment; filename=transactions_{datetime.now().strftime("%Y%m%d")}.csv'
        }
    )


@app.route('/import-csv', methods=['POST'])
def import_csv_route():
    if 'file' not in request.files:
        return jsonify({'error': 'No file provided'}), 400

    file = request.files['file']
    if file.filename == '':
        return jsonify({'error': 'No file selected'}), 400

    filename = secure_filename(file.filename)
    if not filename.lower().endswith('.csv'):
        return jsonify({'error': 'Invalid file format'}), 400

    try:
        rows = parse_csv(file.stream)
    except ImportFormatError as e:
        return _error_response(e, 400)

    today = reports.today()
    imported = 0
    skipped = []
    try:
        with unit_of_work():
            for row_num, payload in rows:
                try:
                    fields = clean_transaction(payload, today=today)
                    ingest_transaction(fields)
                except ValidationError as e:
                    skipped.append({'row': row_num, 'errors': e.errors})
                    continue
                imported += 1
    except PersistenceError as e:
        return _error_response(e, 500)

    app.logger.info("Imported %d transactions from %s (%d skipped)", imported, filename, len(skipped))
    return jsonify({
        'message': f'Imported {imported} transactions',
        'imported': imported,
        'skipped': skipped,
    })


# Database initialization function
def init_database():
    """Create any missing tables."""
    db.create_all()


if __name__ == '__main__':
    with app.app_context():
        try:
            init_database()
            print("Database tables created successfully!")
        except SQLAlchemyError as e:
            print(f"Error initializing database: {str(e)}")
            raise

    print("Starting Finance Tracker API...")
    print("Access the API at: http://localhost:5000")
    print("Press Ctrl+C to stop the server")
    app.run(debug=True, host='0.0.0.0', port=5000)
