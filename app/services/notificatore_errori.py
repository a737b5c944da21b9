import html
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from typing import List, Optional, Sequence

from app.config import settings
from app.domain.models.errori import ErroriConsegna
from app.domain.models.fattura import Fattura

logger = logging.getLogger("notifiche.errori")


@dataclass
class NotificaErrore:
    id_fattura: str
    numero: str
    fornitore: str
    punto_vendita: str
    data_consegna: str
    testo_ddt: str
    errori: ErroriConsegna
    subject: str
    testo: str
    html: str


def _fmt_quantita(valore: Optional[float]) -> str:
    if valore is None:
        return "-"
    return str(int(valore)) if float(valore).is_integer() else str(valore)


def render_notifica(fattura: Fattura, errori: ErroriConsegna) -> NotificaErrore:
    """Costruisce testo e HTML a partire dagli stessi dati della segnalazione."""
    subject = f"[Consegne] Errori consegna DDT {fattura.numero} - {fattura.fornitore} - {fattura.punto_vendita}"

    testo = [
        "È stata registrata una segnalazione di errori sulla consegna.",
        "",
        f"- Documento: {fattura.numero}",
        f"- Fornitore: {fattura.fornitore or 'N/D'}",
        f"- Punto vendita: {fattura.punto_vendita or 'N/D'}",
        f"- Data consegna: {errori.data_consegna}",
        f"- Segnalato da: {errori.utente or 'Sistema'}",
        f"- Righe con errori: {errori.righe_modificate} su {errori.righe_totali}",
        "",
    ]
    for r in errori.righe_con_errori:
        testo.append(
            f"Riga {r.riga}: {r.codice} {r.prodotto} - ordinato {_fmt_quantita(r.quantita_ordinata)} "
            f"{r.unita_misura}, ricevuto {_fmt_quantita(r.quantita_ricevuta)} {r.unita_misura}"
            + (f" ({r.motivo})" if r.motivo else "")
        )
    if errori.note_aggiuntive:
        testo.extend(["", f"Note: {errori.note_aggiuntive}"])
    testo.extend(["", "Testo DDT originale:", fattura.testo_ddt or "Nessun DDT disponibile"])

    e = html.escape
    righe_html = "".join(
        "<tr>"
        f"<td>{r.riga}</td><td>{e(r.codice)}</td><td>{e(r.prodotto)}</td><td>{e(r.unita_misura)}</td>"
        f"<td>{_fmt_quantita(r.quantita_ordinata)}</td><td>{_fmt_quantita(r.quantita_ricevuta)}</td>"
        f"<td>{e(r.motivo)}</td>"
        "</tr>"
        for r in errori.righe_con_errori
    )
    corpo_html = (
        f"<h2>Errori consegna DDT {e(fattura.numero)}</h2>"
        "<ul>"
        f"<li><b>Fornitore:</b> {e(fattura.fornitore or 'N/D')}</li>"
        f"<li><b>Punto vendita:</b> {e(fattura.punto_vendita or 'N/D')}</li>"
        f"<li><b>Data consegna:</b> {e(errori.data_consegna)}</li>"
        f"<li><b>Segnalato da:</b> {e(errori.utente or 'Sistema')}</li>"
        f"<li><b>Righe con errori:</b> {errori.righe_modificate} su {errori.righe_totali}</li>"
        "</ul>"
    )
    if righe_html:
        corpo_html += (
            "<table border='1' cellpadding='4' cellspacing='0'>"
            "<tr><th>Riga</th><th>Codice</th><th>Prodotto</th><th>UM</th>"
            "<th>Ordinato</th><th>Ricevuto</th><th>Motivo</th></tr>"
            f"{righe_html}</table>"
        )
    if errori.note_aggiuntive:
        corpo_html += f"<p><b>Note:</b> {e(errori.note_aggiuntive)}</p>"
    corpo_html += f"<h3>Testo DDT originale</h3><pre>{e(fattura.testo_ddt or 'Nessun DDT disponibile')}</pre>"

    return NotificaErrore(
        id_fattura=fattura.id,
        numero=fattura.numero,
        fornitore=fattura.fornitore,
        punto_vendita=fattura.punto_vendita,
        data_consegna=errori.data_consegna,
        testo_ddt=fattura.testo_ddt,
        errori=errori,
        subject=subject,
        # CRLF per avere a capo coerenti nei client di posta
        testo="\r\n".join(testo),
        html=corpo_html,
    )


@dataclass
class ConfigSmtp:
    host: str
    port: int
    mittente: str
    username: str = ""
    password: str = ""
    starttls: bool = True

    @classmethod
    def da_settings(cls) -> "ConfigSmtp":
        """Configurazione SMTP dalle variabili NOTIFIER_SMTP_*."""
        return cls(
            host=settings.get_notifier_smtp_host(),
            port=settings.get_notifier_smtp_port(),
            mittente=settings.get_notifier_smtp_from(),
            username=settings.get_notifier_smtp_user(),
            password=settings.get_notifier_smtp_password(),
            starttls=settings.get_notifier_smtp_starttls(),
        )

    @property
    def configurata(self) -> bool:
        return bool(self.host and self.mittente)


def componi_email(notifica: NotificaErrore, mittente: str, indirizzi: Sequence[str]) -> EmailMessage:
    """Email multipart: testo semplice con alternativa HTML."""
    messaggio = EmailMessage()
    messaggio["Subject"] = notifica.subject
    messaggio["From"] = mittente
    messaggio["To"] = ", ".join(indirizzi)
    messaggio.set_content(notifica.testo)
    messaggio.add_alternative(notifica.html, subtype="html")
    return messaggio


class NotificatoreErrori:
    """
    Invia le segnalazioni di errore consegna via email (SMTP configurato
    tramite variabili d'ambiente).

    L'invio non solleva mai eccezioni: restituisce False e registra il problema.
    """

    TIMEOUT_SMTP = 15

    def __init__(self, destinatari: Optional[Sequence[str]] = None):
        self.destinatari = list(destinatari) if destinatari is not None else settings.get_notifier_destinatari()

    def indirizzi(self) -> List[str]:
        return [d.strip() for d in self.destinatari if d and d.strip()]

    def invia(self, notifica: NotificaErrore) -> bool:
        indirizzi = self.indirizzi()
        config = ConfigSmtp.da_settings()
        if not indirizzi or not config.configurata:
            logger.warning(
                "Notifica errori per la fattura %s non inviata: %s",
                notifica.id_fattura, "nessun destinatario" if not indirizzi else "SMTP non configurato",
            )
            return False

        try:
            self._spedisci(config, componi_email(notifica, config.mittente, indirizzi))
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning("Notifica errori per la fattura %s non inviata: %s", notifica.id_fattura, exc)
            return False
        logger.info("Notifica errori per la fattura %s inviata a %d destinatari", notifica.id_fattura, len(indirizzi))
        return True

    def _spedisci(self, config: ConfigSmtp, messaggio: EmailMessage) -> None:
        with smtplib.SMTP(config.host, config.port, timeout=self.TIMEOUT_SMTP) as smtp:
            if config.starttls:
                smtp.starttls(context=ssl.create_default_context())
            if config.username:
                smtp.login(config.username, config.password)
            smtp.send_message(messaggio)
