"""
Streamlit UI for the Umrah Invoice Tool.

Features:
- Invoice form with live SAR/PKR breakdown (recomputed on every change)
- Generate (stage + cloud save), Save to Excel, Export PDF
- Staged invoice list
- Cloud history with filters and Excel export
"""
import streamlit as st
import pandas as pd
from io import BytesIO
from datetime import date, datetime

from umrah_invoice.config.settings import get_settings
from umrah_invoice.engine import InvoiceInput, format_currency
from umrah_invoice.errors import ExportError, RecordStoreError, ValidationError
from umrah_invoice.services import build_invoice_service
from umrah_invoice.utils.logger import setup_logging


st.set_page_config(
    page_title="Umrah Invoice Generator",
    layout="wide",
    initial_sidebar_state="expanded"
)

PACKAGE_TYPES = ["", "Economy", "Standard", "Premium", "VIP"]


@st.cache_resource
def get_service():
    """Get cached invoice service instance."""
    settings = get_settings()
    setup_logging(settings.log_level)
    return build_invoice_service(settings)


try:
    service = get_service()
    settings = get_settings()
except Exception as e:
    st.error(f"System Error: {e}")
    st.stop()


def show_status(status):
    if status.kind == "error":
        st.error(status.text)
    else:
        st.success(status.text)


# ============================================================================
# SIDEBAR: Staged invoices
# ============================================================================
with st.sidebar:
    st.header("🗂️ Staged Invoices")
    staged = service.staging.get_all()
    if staged:
        for record in staged:
            c1, c2 = st.columns([3, 1])
            c1.caption(f"**{record.get('invoiceNumber')}** · {record.get('clientName', '')}")
            if c2.button("✖", key=f"rm_{record.get('invoiceNumber')}"):
                service.staging.remove(record.get('invoiceNumber'))
                st.rerun()
        if st.button("🗑️ Clear Staged", use_container_width=True):
            service.staging.clear()
            st.rerun()
    else:
        st.info("No staged invoices")


st.title("Umrah Invoice Generator")
st.caption(f"v1.0 | {datetime.now().strftime('%Y-%m-%d')}")

tab1, tab2 = st.tabs(["🧾 New Invoice", "📜 History"])


# ============================================================================
# TAB 1: INVOICE FORM
# ============================================================================
with tab1:
    col1, col2 = st.columns([1.6, 1.2], gap="large")

    with col1:
        with st.container(border=True):
            st.markdown("##### Client")
            c1, c2 = st.columns(2)
            client_name = c1.text_input("Client Name")
            invoice_date = c2.date_input("Invoice Date", value=date.today())
            c1, c2, c3 = st.columns(3)
            from_date = c1.text_input("From Date", placeholder="YYYY-MM-DD")
            to_date = c2.text_input("To Date", placeholder="YYYY-MM-DD")
            package_type = c3.selectbox("Package Type", PACKAGE_TYPES)

        with st.container(border=True):
            st.markdown("##### Hotels (SAR per night)")
            c1, c2, c3 = st.columns([2, 1, 1])
            makkah_hotel_name = c1.text_input("Makkah Hotel")
            makkah_hotel_rate = c2.text_input("Makkah Rate", value="")
            nights_in_makkah = c3.text_input("Nights in Makkah", value="")
            c1, c2, c3 = st.columns([2, 1, 1])
            madinah_hotel_name = c1.text_input("Madinah Hotel")
            madinah_hotel_rate = c2.text_input("Madinah Rate", value="")
            nights_in_madinah = c3.text_input("Nights in Madinah", value="")

        with st.container(border=True):
            st.markdown("##### Per Pax Charges")
            c1, c2, c3 = st.columns(3)
            visa_rate = c1.text_input("Visa Rate (SAR / pax)", value="")
            ziyarat_rate = c2.text_input("Ziyarat Rate (SAR / pax)", value="")
            per_pax_count = c3.text_input("Pax Count", value="")
            c1, c2, c3 = st.columns(3)
            airline_name = c1.text_input("Airline")
            airline_price_pkr = c2.text_input("Airline Price (PKR / pax)", value="")
            profit_percentage = c3.text_input("Profit %", value="")
            exchange_rate = st.text_input("Exchange Rate (1 SAR = ? PKR)", value="")

        with st.container(border=True):
            st.markdown("##### Package Text")
            c1, c2 = st.columns(2)
            visa_text = c1.text_input("Visa Text", placeholder="KSA Umrah visa included")
            transport_text = c2.text_input("Transport Text", placeholder="6 Sector Sharing Transport By BUS")
            historical_visit = st.checkbox("Historical Visit Included")

    form = InvoiceInput(
        makkah_hotel_rate=makkah_hotel_rate,
        nights_in_makkah=nights_in_makkah,
        madinah_hotel_rate=madinah_hotel_rate,
        nights_in_madinah=nights_in_madinah,
        visa_rate=visa_rate,
        ziyarat_rate=ziyarat_rate,
        profit_percentage=profit_percentage,
        per_pax_count=per_pax_count,
        exchange_rate=exchange_rate,
        airline_price_pkr=airline_price_pkr,
        client_name=client_name,
        invoice_date=invoice_date.isoformat() if invoice_date else "",
        from_date=from_date,
        to_date=to_date,
        makkah_hotel_name=makkah_hotel_name,
        madinah_hotel_name=madinah_hotel_name,
        airline_name=airline_name,
        package_type=package_type,
        visa=visa_text,
        transport=transport_text,
        historical_visit=historical_visit,
    )
    breakdown, trace = service.engine.calculate_with_trace(form)

    with col2:
        st.subheader("Invoice Summary")
        with st.container(border=True):
            m1, m2 = st.columns(2)
            m1.metric("Per Pax (PKR)", format_currency(breakdown.per_pax_pkr, "PKR"))
            m2.metric("Total (PKR)", format_currency(breakdown.total_with_profit_pkr, "PKR"))

            show_exact = st.toggle("Show exact amounts", value=True)

            def shown(amount, currency="SAR"):
                if show_exact:
                    return format_currency(amount, currency)
                return f"{round(amount):,} {currency}"

            summary = pd.DataFrame([
                {"Item": "Makkah Hotel", "Amount": shown(breakdown.makkah_cost)},
                {"Item": "Madinah Hotel", "Amount": shown(breakdown.madinah_cost)},
                {"Item": f"Visa ({breakdown.pax_count} pax)", "Amount": shown(breakdown.visa_total)},
                {"Item": f"Ziyarat ({breakdown.pax_count} pax)", "Amount": shown(breakdown.ziyarat_total)},
                {"Item": "Base Total", "Amount": shown(breakdown.base_total)},
                {"Item": "With Profit", "Amount": shown(breakdown.with_profit)},
                {"Item": "Per Pax", "Amount": shown(breakdown.per_pax_sar)},
                {"Item": "Airline Total", "Amount": shown(breakdown.airline_total_pkr, "PKR")},
            ])
            st.dataframe(summary, use_container_width=True, hide_index=True)

            if breakdown.per_pax_total_discrepancy_pkr:
                st.caption(
                    f"Per pax × {breakdown.pax_count} differs from the total by "
                    f"{format_currency(breakdown.per_pax_total_discrepancy_pkr, 'PKR')} (rounding)"
                )

            with st.expander("🔍 Calculation Details"):
                for t in trace:
                    if t.value:
                        st.caption(f"**{t.step}**: {t.description} = `{t.value}`")
                    else:
                        st.caption(f"**{t.step}**: {t.description}")

        st.divider()
        b1, b2, b3 = st.columns(3)
        disabled = not client_name
        with b1:
            if st.button("🧾 Generate", type="primary", disabled=disabled, use_container_width=True):
                try:
                    result = service.generate(form)
                    show_status(result.status)
                except ValidationError as e:
                    st.error(str(e))
        with b2:
            if st.button("📥 Save to Excel", disabled=disabled, use_container_width=True):
                try:
                    show_status(service.commit_staged())
                except ValidationError as e:
                    st.error(str(e))
                except ExportError as e:
                    st.error(f"Error saving to Excel: {e}")
        with b3:
            if not disabled:
                try:
                    file_name, content = service.render_pdf(form)
                    st.download_button(
                        "📄 PDF",
                        data=content,
                        file_name=file_name,
                        mime="application/pdf",
                        use_container_width=True,
                    )
                except ExportError as e:
                    st.error(f"Error exporting PDF: {e}")


# ============================================================================
# TAB 2: HISTORY
# ============================================================================
with tab2:
    st.subheader("📜 Cloud Invoices")

    c1, c2, c3, c4 = st.columns(4)
    f_client = c1.text_input("Client starts with")
    f_package = c2.selectbox("Package", PACKAGE_TYPES, key="history_package")
    f_from = c3.text_input("From (YYYY-MM-DD)")
    f_to = c4.text_input("To (YYYY-MM-DD)")

    if "history_pages" not in st.session_state:
        st.session_state.history_pages = 1
    page_size = settings.history_page_size

    try:
        rows = service.store.list_records(
            client=f_client or None,
            package_type=f_package or None,
            date_from=f_from or None,
            date_to=f_to or None,
            limit=page_size * st.session_state.history_pages,
        )
    except RecordStoreError as e:
        st.error(str(e))
        rows = []

    history = service.excel.history_frame(rows)
    st.dataframe(history, use_container_width=True, hide_index=True)

    h1, h2, h3 = st.columns(3)
    with h1:
        if len(rows) >= page_size * st.session_state.history_pages:
            if st.button("Load more"):
                st.session_state.history_pages += 1
                st.rerun()
    with h2:
        try:
            workbook = BytesIO()
            exported = service.excel.export_history(rows, workbook)
            st.download_button(
                "📥 Export Excel",
                data=workbook.getvalue(),
                file_name=exported["file_name"],
                mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                disabled=not rows,
            )
        except ExportError as e:
            st.error(f"Error exporting history: {e}")
    with h3:
        if st.button("🩺 Run Store Diagnostic"):
            result = service.store.diagnose()
            if result["ok"]:
                st.success(f"{result['message']} | Doc ID: {result['id']} | Round Trip: {result['round_trip_ms']}ms")
            else:
                st.error(f"{result['message']}: {result.get('error', '')}")
