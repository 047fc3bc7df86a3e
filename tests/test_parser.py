import json

import pytest

from flightclaim import extract_email, extract_flight_records, process_emails
from flightclaim.config import build_config

SCENARIO_JSON_LD = (
    '<script type="application/ld+json">{"@type":"FlightReservation","reservationNumber":"LH9K2P",'
    '"reservationFor":{"flightNumber":"456","airline":{"iataCode":"LH"},'
    '"departureAirport":{"iataCode":"FRA"},"arrivalAirport":{"iataCode":"JFK"},'
    '"departureTime":"2026-04-12T10:00:00Z"}}</script>'
)

EASYJET_BODY = "Your booking K5LN96D: flight U2 3847, LGW (LGW) to BCN (BCN) on 10 March 2026"


# ============================================================================
# END-TO-END SCENARIOS
# ============================================================================

def test_json_ld_email_gives_structured_record(make_email):
    records = extract_flight_records(make_email(html=SCENARIO_JSON_LD))

    assert len(records) == 1
    result = records[0].to_dict()
    assert result['flightNumber'] == "LH 456"
    assert result['from'] == "FRA"
    assert result['to'] == "JFK"
    assert result['bookingRef'] == "LH9K2P"
    assert result['confidence'] == 100
    assert result['source'] == "structured"


def test_plain_text_confirmation(make_email):
    records = extract_flight_records(make_email(plain=EASYJET_BODY, from_addr="booking@easyjet.com"))

    assert len(records) == 1
    record = records[0]
    assert record.flight_number == "U2 3847"
    assert record.origin == "LGW"
    assert record.destination == "BCN"
    assert record.departure_date == "2026-03-10"
    assert record.booking_ref == "K5LN96D"
    assert record.source == "heuristic"
    assert record.confidence >= 80
    assert record.confidence == 85


def test_plain_text_confirmation_from_unknown_sender(make_email):
    record, = extract_flight_records(make_email(plain=EASYJET_BODY))
    assert record.confidence == 75
    assert record.breakdown.known_sender_domain == 0


def test_return_leg_inferred_across_emails(make_email):
    outbound = make_email(plain="Booking reference: PC5N9K. Flight PC 397 MXP → SAW on 15 May 2026.")
    inbound = make_email(plain="Booking reference: PC5N9K. Return flight PC 398 (→ MXP) on 22 May 2026.")

    records = process_emails([outbound, inbound])

    by_flight = {r.flight_number: r for r in records}
    assert set(by_flight) == {"PC 397", "PC 398"}
    assert (by_flight["PC 397"].origin, by_flight["PC 397"].destination) == ("MXP", "SAW")
    assert (by_flight["PC 398"].origin, by_flight["PC 398"].destination) == ("SAW", "MXP")
    assert by_flight["PC 398"].route_inferred is True
    assert by_flight["PC 398"].to_dict()['routeInferred'] is True


def test_airport_name_is_not_a_route(make_email):
    body = "Booking reference: K5LN96D. Flight U2 1234 departs from Milan-Bergamo on 10 March 2026."

    record, = extract_flight_records(make_email(plain=body))

    assert record.to_dict()['from'] == ""
    assert record.to_dict()['to'] == ""
    assert record.breakdown.departure_airport == 0
    assert record.breakdown.arrival_airport == 0
    assert record.confidence == 55


def test_html_with_stylesheet_link_in_body(make_email):
    html = ("<html><body><p>Your booking K5LN96D</p><link rel='stylesheet' href='x.css'>"
            "<p>Flight U2 3847 LGW to BCN on 10 March 2026</p></body></html>")

    record, = extract_flight_records(make_email(html=html))

    assert record.flight_number == "U2 3847"
    assert record.route_display == "LGW → BCN"
    assert record.booking_ref == "K5LN96D"


def test_broken_json_ld_falls_back_to_heuristics(make_email):
    html = ('<script type="application/ld+json">{"@type":"FlightReservation","reservationFor":{"flightNu'
            f'</script><p>{EASYJET_BODY}</p>')

    records = extract_flight_records(make_email(html=html))

    assert [r.flight_number for r in records] == ["U2 3847"]
    assert records[0].source == "heuristic"


# ============================================================================
# PIPELINE PROPERTIES
# ============================================================================

def test_json_ld_takes_precedence_over_text(make_email):
    html = SCENARIO_JSON_LD + f"<p>{EASYJET_BODY}</p>"

    records = extract_flight_records(make_email(html=html))

    assert [r.flight_number for r in records] == ["LH 456"]


def test_extraction_is_idempotent(make_email):
    raw = make_email(plain=EASYJET_BODY, from_addr="booking@easyjet.com")
    assert extract_flight_records(raw) == extract_flight_records(raw)


def test_icao_and_iata_prefixes_give_the_same_record(make_email):
    icao = extract_flight_records(make_email(plain=EASYJET_BODY.replace("U2 3847", "EZY3847")))
    iata = extract_flight_records(make_email(plain=EASYJET_BODY))
    assert [r.to_dict() for r in icao] == [r.to_dict() for r in iata]


def test_flight_number_alone_is_below_threshold(make_email):
    assert extract_flight_records(make_email(plain="Flight U2 3847")) == []


def test_threshold_is_configurable(make_email):
    config = build_config(acceptance_threshold=10)
    record, = extract_flight_records(make_email(plain="Flight U2 3847"), config)
    assert record.confidence == 15
    assert record.booking_ref == "-"


def test_empty_email(make_email):
    assert extract_flight_records(make_email()) == []
    assert extract_flight_records(make_email(plain="Thanks for subscribing")) == []


def test_dict_input():
    records = extract_email({
        "subject": "Your easyJet booking",
        "from": "booking@easyjet.com",
        "dateHeader": "Tue, 10 Feb 2026 09:00:00 +0000",
        "htmlBody": "",
        "plainBody": EASYJET_BODY,
    })
    assert [r.flight_number for r in records] == ["U2 3847"]


def test_rejects_other_input_types():
    with pytest.raises(TypeError):
        extract_flight_records("just a string")


def test_output_is_json_serializable(make_email):
    records = extract_flight_records(make_email(plain=EASYJET_BODY))
    result = json.loads(json.dumps([r.to_dict() for r in records]))
    assert result[0]['bookingRef'] == "K5LN96D"
    assert 'passengerName' not in result[0]
    assert result[0]['breakdown']['flightNumber'] == 15


def test_two_flights_in_one_email(make_email):
    body = ("Booking reference: K5LN96D\n"
            "Outbound: U2 3847 LGW → BCN, 10 March 2026\n"
            "Please arrive at the airport two hours before departure.\n"
            "Return: U2 3848 BCN → LGW, 17 March 2026\n")

    records = extract_flight_records(make_email(plain=body))

    by_flight = {r.flight_number: r for r in records}
    assert by_flight["U2 3847"].route_display == "LGW → BCN"
    assert by_flight["U2 3848"].route_display == "BCN → LGW"
    assert by_flight["U2 3848"].departure_date == "2026-03-17"


def test_yearless_date_uses_header_year(make_email):
    raw = make_email(plain="Booking reference: K5LN96D. Flight U2 3847 LGW → BCN, Sun 10 Mar",
                     date_header="Tue, 10 Feb 2026 09:00:00 +0000")

    record, = extract_flight_records(raw)

    assert record.departure_date == "2026-03-10"
    assert record.breakdown.date == 15


# ============================================================================
# BATCH PROCESSING
# ============================================================================

def test_duplicate_emails_give_one_record(make_email):
    raw = make_email(plain=EASYJET_BODY)
    assert len(process_emails([raw, raw, raw])) == 1


def test_better_email_wins(make_email):
    weak = make_email(plain="Flight U2 3847 on 10 March 2026, booking K5LN96D")
    strong = make_email(plain=EASYJET_BODY, from_addr="booking@easyjet.com")

    record, = process_emails([weak, strong])

    assert record.confidence == 85
    assert record.origin == "LGW"


def test_max_emails_limits_the_batch(make_email):
    first = make_email(plain=EASYJET_BODY)
    second = make_email(plain=EASYJET_BODY.replace("U2 3847", "U2 3848"))

    assert [r.flight_number for r in process_emails([first, second], max_emails=1)] == ["U2 3847"]
    assert process_emails([first, second], max_emails=0) == []


def test_thread_pool_gives_the_same_result(make_email):
    emails = [
        make_email(plain=EASYJET_BODY.replace("3847", str(3800 + n)), from_addr="booking@easyjet.com")
        for n in range(8)
    ]
    assert process_emails(emails, max_workers=4) == process_emails(emails, max_workers=1)


def test_results_sorted_by_confidence(make_email):
    emails = [
        make_email(plain="Flight U2 1111 on 10 March 2026, booking K5LN96D"),
        make_email(html=SCENARIO_JSON_LD),
        make_email(plain=EASYJET_BODY, from_addr="booking@easyjet.com"),
    ]
    confidences = [r.confidence for r in process_emails(emails)]
    assert confidences == sorted(confidences, reverse=True)
    assert confidences[0] == 100
