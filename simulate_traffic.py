# Traffic simulator for the parking reservation API
# Run against a live server: python simulate_traffic.py

import os
import random
import time
from datetime import datetime, timedelta, timezone

import requests

# Configuration
BASE_URL = os.getenv('PARKING_API_URL', 'http://localhost:8080')
SPOT_NUMBERS = ["A1", "A2", "A3", "A4", "A5", "B1", "B2", "B3", "B4", "B5"]
SAMPLE_DRIVERS = [("Bob", "XYZ123"), ("Alice", "ABC123"), ("Dewi", "DEF456"),
                  ("Rudi", "GHI321"), ("Sari", "JKL654"), ("Tono", "MNO987")]


def start_time_in(minutes):
    start = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    return start.replace(microsecond=0).isoformat().replace('+00:00', 'Z')


def list_spots():
    response = requests.get(f"{BASE_URL}/parking-spots")
    response.raise_for_status()
    return response.json()


def create_spot(spot_number):
    """Create a spot, ignore ones that already exist"""
    try:
        response = requests.post(f"{BASE_URL}/parking-spots", json={"spot_number": spot_number})
        if response.status_code == 200:
            print(f"✅ Created spot {spot_number}")
        else:
            print(f"❌ Failed to create {spot_number}: {response.json().get('error')}")
    except requests.RequestException as e:
        print(f"❌ Error creating {spot_number}: {e}")


def book_spot(spot_id, name, car_number, duration=60):
    data = {
        "spot_id": spot_id,
        "name": name,
        "car_number": car_number,
        "start_time": start_time_in(random.randint(0, 120)),
        "duration": duration
    }
    try:
        response = requests.post(f"{BASE_URL}/book-spot", json=data)
        if response.status_code == 200:
            reservation = response.json()['reservation']
            print(f"🚗 {car_number} booked spot {spot_id} (reservation {reservation['id']})")
            return reservation
        print(f"❌ {car_number} could not book spot {spot_id}: {response.json().get('error')}")
    except requests.RequestException as e:
        print(f"❌ Error booking spot {spot_id}: {e}")
    return None


def delete_reservation(reservation_id):
    try:
        response = requests.delete(f"{BASE_URL}/reservation/delete/{reservation_id}")
        if response.status_code == 200:
            print(f"👋 Reservation {reservation_id} released")
        else:
            print(f"❌ Failed to release {reservation_id}: {response.json().get('error')}")
    except requests.RequestException as e:
        print(f"❌ Error releasing {reservation_id}: {e}")


def get_summary():
    try:
        response = requests.get(f"{BASE_URL}/summary")
        if response.status_code == 200:
            data = response.json()
            print(f"📊 Summary: {data['occupied']}/{data['total']} occupied ({data['occupancy_rate']}%)")
        else:
            print(f"❌ Failed to get summary: {response.text}")
    except requests.RequestException as e:
        print(f"❌ Error getting summary: {e}")


def simulate_random_activity(rounds=20, delay=1):
    """Book and release random spots"""
    print("🎯 Starting random booking simulation...")
    spots = list_spots()
    if not spots:
        print("❌ No spots yet, create the default spots first")
        return
    active = []

    for i in range(rounds):
        if active and random.random() < 0.4:
            delete_reservation(active.pop(random.randrange(len(active)))['id'])
        else:
            spot = random.choice(spots)
            name, car_number = random.choice(SAMPLE_DRIVERS)
            reservation = book_spot(spot['id'], name, car_number)
            if reservation:
                active.append(reservation)

        if (i + 1) % 5 == 0:
            get_summary()
            print("-" * 50)

        time.sleep(delay)


def check_double_booking():
    """Book the same free spot twice, the second one must be refused"""
    free = [s for s in list_spots() if not s['is_occupied']]
    if not free:
        print("❌ No free spot to test with")
        return
    spot_id = free[0]['id']
    first = book_spot(spot_id, "Bob", "XYZ123")
    second = book_spot(spot_id, "Alice", "ABC123")
    print("✅ Double booking refused" if first and not second else "❌ Double booking not refused")
    if first:
        delete_reservation(first['id'])


def test_all_endpoints():
    """Hit every read endpoint"""
    print("🧪 Testing read endpoints...")

    for endpoint in ["/parking-spots", "/reservations", "/summary", "/health"]:
        try:
            response = requests.get(f"{BASE_URL}{endpoint}")
            if response.status_code == 200:
                print(f"✅ GET {endpoint}: OK")
            else:
                print(f"❌ GET {endpoint}: {response.status_code} - {response.text}")
        except requests.RequestException as e:
            print(f"❌ GET {endpoint}: Error - {e}")


if __name__ == "__main__":
    print("🚀 Parking Reservation Traffic Script")
    print("=" * 50)

    while True:
        print("\nSelect scenario:")
        print("1. Test read endpoints")
        print("2. Create default spots")
        print("3. Random booking simulation")
        print("4. Double booking check")
        print("5. Show summary")
        print("0. Exit")

        choice = input("\nEnter choice (0-5): ").strip()

        if choice == "0":
            print("👋 Goodbye!")
            break
        elif choice == "1":
            test_all_endpoints()
        elif choice == "2":
            for spot_number in SPOT_NUMBERS:
                create_spot(spot_number)
        elif choice == "3":
            simulate_random_activity()
        elif choice == "4":
            check_double_booking()
        elif choice == "5":
            get_summary()
        else:
            print("❌ Invalid choice")
